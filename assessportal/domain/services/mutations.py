"""
Mutation coordination for create/delete actions.

Each mutation runs as: confirmation (for destructive actions) -> gateway
call -> refresh of the source list -> outcome message. The refresh only
starts after the mutating call has succeeded, and a failed mutation never
touches the list the caller is displaying.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog
from assessportal.domain.models import Assessment, User
from assessportal.libs.portal_client import PortalClient, PortalClientError, UploadedFile

logger = structlog.get_logger()

R = TypeVar("R")

CANCELLED_MESSAGE = "Cancelled"
MIN_DURATION_MINUTES = 5


@dataclass(slots=True, frozen=True)
class ConfirmationRequest:
    """Question put to the user before a destructive action."""

    action: str
    target_id: str
    target_name: str
    message: str


@dataclass(slots=True)
class MutationOutcome(Generic[R]):
    ok: bool
    message: str
    refreshed: R | None = None


def assessment_deletion_request(assessment: Assessment) -> ConfirmationRequest:
    return ConfirmationRequest(
        action="delete_assessment",
        target_id=assessment.id,
        target_name=assessment.title,
        message=(
            f'Are you sure you want to delete the assessment "{assessment.title}"? '
            "This action cannot be undone."
        ),
    )


def user_deletion_request(user: User) -> ConfirmationRequest:
    return ConfirmationRequest(
        action="delete_user",
        target_id=user.id,
        target_name=user.name,
        message=(
            f'Are you sure you want to delete "{user.name}"?\n\n'
            "This will:\n"
            "- Remove the user from the system\n"
            "- Remove them from all assessments\n"
            "- This action cannot be undone"
        ),
    )


class MutationCoordinator:
    """Runs a mutation, then refreshes, then reports."""

    async def run(
        self,
        mutation: Callable[[], Awaitable[Any]],
        *,
        refresh: Callable[[], Awaitable[R]] | None = None,
        success_message: str | Callable[[Any], str],
        error_prefix: str = "",
    ) -> MutationOutcome[R]:
        try:
            result = await mutation()
        except PortalClientError as exc:
            await logger.awarning("mutation_failed", error=str(exc))
            return MutationOutcome(ok=False, message=f"{error_prefix}{exc}")

        message = success_message(result) if callable(success_message) else success_message

        if refresh is None:
            return MutationOutcome(ok=True, message=message)

        try:
            refreshed = await refresh()
        except PortalClientError as exc:
            await logger.awarning("mutation_refresh_failed", error=str(exc))
            return MutationOutcome(ok=True, message=f"{message} (refresh failed: {exc})")

        return MutationOutcome(ok=True, message=message, refreshed=refreshed)

    async def run_confirmed(
        self,
        request: ConfirmationRequest,
        accepted: bool,
        mutation: Callable[[], Awaitable[Any]],
        **kwargs: Any,
    ) -> MutationOutcome[Any]:
        """Run ``mutation`` only when the user accepted ``request``."""
        if not accepted:
            logger.info("mutation_declined", action=request.action, target_id=request.target_id)
            return MutationOutcome(ok=False, message=CANCELLED_MESSAGE)

        logger.info("mutation_confirmed", action=request.action, target_id=request.target_id)
        return await self.run(mutation, **kwargs)


# --- Assessment creation ---


class DraftValidationError(Exception):
    """Raised when an assessment draft is incomplete."""


class DraftMode(str, Enum):
    GENERATE = "generate"
    UPLOAD = "upload"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SubmissionState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    CREATED = "created"
    FAILED = "failed"


@dataclass(slots=True)
class AssessmentDraft:
    """Form state of the create-assessment view."""

    title: str = ""
    description: str = ""
    mode: DraftMode = DraftMode.GENERATE
    prompt: str = ""
    upload: UploadedFile | None = None
    selected_candidates: list[str] = field(default_factory=list)
    scheduled_from: datetime | None = None
    scheduled_to: datetime | None = None
    duration_minutes: int = 30
    time_per_question: int = 0
    difficulty: Difficulty = Difficulty.MEDIUM

    def toggle_candidate(self, candidate_id: str) -> None:
        if candidate_id in self.selected_candidates:
            self.selected_candidates = [
                selected for selected in self.selected_candidates if selected != candidate_id
            ]
        else:
            self.selected_candidates = [*self.selected_candidates, candidate_id]

    def validate(self) -> None:
        if not self.title.strip():
            raise DraftValidationError("Title is required")
        if self.mode is DraftMode.GENERATE and not self.prompt.strip():
            raise DraftValidationError("A prompt is required to generate questions")
        if self.mode is DraftMode.UPLOAD and self.upload is None:
            raise DraftValidationError("A document is required in upload mode")
        if self.duration_minutes < MIN_DURATION_MINUTES:
            raise DraftValidationError(
                f"Duration must be at least {MIN_DURATION_MINUTES} minutes"
            )
        if self.time_per_question < 0:
            raise DraftValidationError("Time per question cannot be negative")
        if self.scheduled_from is not None and self.scheduled_to is not None:
            if (self.scheduled_from.tzinfo is None) != (self.scheduled_to.tzinfo is None):
                raise DraftValidationError(
                    "Schedule start and end must both carry a timezone or neither"
                )
            if self.scheduled_to < self.scheduled_from:
                raise DraftValidationError("Schedule end must not be before its start")

    def to_form_fields(self, created_by: str) -> dict[str, str]:
        fields = {
            "title": self.title,
            "description": self.description,
            "createdBy": created_by,
            "assignedTo": json.dumps(self.selected_candidates),
            "scheduledFrom": self.scheduled_from.isoformat() if self.scheduled_from else "",
            "scheduledTo": self.scheduled_to.isoformat() if self.scheduled_to else "",
            "durationMinutes": str(self.duration_minutes),
            "timePerQuestion": str(self.time_per_question),
            "difficulty": self.difficulty.value,
        }
        if self.mode is DraftMode.GENERATE:
            fields["prompt"] = self.prompt
        return fields


class AssessmentSubmission:
    """editing -> submitting -> created | failed (-> editing on the next edit or submit)."""

    def __init__(self, client: PortalClient) -> None:
        self.client = client
        self.state = SubmissionState.EDITING
        self.error: str | None = None
        self.created: dict[str, Any] | None = None

    @property
    def can_submit(self) -> bool:
        return self.state in (SubmissionState.EDITING, SubmissionState.FAILED)

    def resume_editing(self) -> None:
        if self.state is SubmissionState.FAILED:
            self.state = SubmissionState.EDITING

    async def submit(self, draft: AssessmentDraft, *, created_by: str) -> SubmissionState:
        if not self.can_submit:
            await logger.ainfo("assessment_submit_ignored", state=self.state.value)
            return self.state

        self.resume_editing()
        self.error = None

        try:
            draft.validate()
        except DraftValidationError as exc:
            self.error = str(exc)
            return self.state

        self.state = SubmissionState.SUBMITTING
        upload = draft.upload if draft.mode is DraftMode.UPLOAD else None
        try:
            self.created = await self.client.create_assessment(
                draft.to_form_fields(created_by),
                upload=upload,
            )
        except PortalClientError as exc:
            self.state = SubmissionState.FAILED
            self.error = str(exc)
            await logger.awarning("assessment_submit_failed", error=self.error)
            return self.state

        self.state = SubmissionState.CREATED
        return self.state
