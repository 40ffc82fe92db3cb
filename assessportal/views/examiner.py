from __future__ import annotations

from assessportal.domain.models import Assessment, Candidate
from assessportal.domain.services.aggregator import ExaminerStats, PaginatedList, examiner_stats
from assessportal.domain.services.mutations import (
    AssessmentDraft,
    AssessmentSubmission,
    SubmissionState,
)
from assessportal.views.base import GuardedView, PortalContext


class ExaminerDashboardView(GuardedView):
    path = "/examiner/dashboard"

    def __init__(self, context: PortalContext) -> None:
        super().__init__(context)
        self.assessments: PaginatedList[Assessment] = PaginatedList(page_size=self.page_size)
        self.stats = ExaminerStats(total_assessments=0, total_candidates=0, avg_score=0)

    async def load(self) -> None:
        session = self.require_session()
        overview = await self.client.fetch_examiner_assessments(session.id)
        self.assessments.replace(overview.assessments)
        self.stats = examiner_stats(overview)


class CreateAssessmentView(GuardedView):
    """Assessment form; a successful submit leaves for the admin dashboard."""

    path = "/examiner/create"
    success_path = "/admin"
    cancel_path = "/examiner/dashboard"

    def __init__(self, context: PortalContext) -> None:
        super().__init__(context)
        self.candidates: list[Candidate] = []
        self.draft = AssessmentDraft()
        self.submission = AssessmentSubmission(context.client)

    async def load(self) -> None:
        self.candidates = await self.client.fetch_candidates()

    @property
    def state(self) -> SubmissionState:
        return self.submission.state

    def toggle_candidate(self, candidate_id: str) -> None:
        self.submission.resume_editing()
        self.draft.toggle_candidate(candidate_id)

    async def submit(self) -> str | None:
        session = self.require_session()
        state = await self.submission.submit(self.draft, created_by=session.id)
        self.error = self.submission.error
        if state is SubmissionState.CREATED:
            self.context.navigator.push(self.success_path)
            return self.success_path
        return None

    def cancel(self) -> None:
        self.context.navigator.push(self.cancel_path)
