from __future__ import annotations

from pathlib import Path

from assessportal.domain.forms import FormValidationError, NewUserForm, parse_form
from assessportal.domain.models import Assessment, Result, User
from assessportal.domain.services.aggregator import (
    ResultStats,
    UserGroups,
    partition_users,
    result_stats,
)
from assessportal.domain.services.mutations import (
    ConfirmationRequest,
    MutationCoordinator,
    MutationOutcome,
    assessment_deletion_request,
    user_deletion_request,
)
from assessportal.domain.services.reports import EmptyReportError, export_user_report
from assessportal.libs.portal_client import PortalClientError
from assessportal.views.base import GuardedView, PortalContext


class AdminDashboardView(GuardedView):
    """All assessments, with deletion."""

    path = "/admin"

    def __init__(self, context: PortalContext) -> None:
        super().__init__(context)
        self.assessments: list[Assessment] = []
        self.mutations = MutationCoordinator()

    async def load(self) -> None:
        self.assessments = await self.client.fetch_all_assessments()

    def request_delete(self, assessment_id: str) -> ConfirmationRequest:
        assessment = next((a for a in self.assessments if a.id == assessment_id), None)
        if assessment is None:
            raise ValueError(f"Assessment {assessment_id} is not listed")
        return assessment_deletion_request(assessment)

    async def confirm_delete(
        self, request: ConfirmationRequest, accepted: bool
    ) -> MutationOutcome[list[Assessment]]:
        self.require_session()
        outcome = await self.mutations.run_confirmed(
            request,
            accepted,
            lambda: self.client.delete_assessment(request.target_id),
            refresh=self.client.fetch_all_assessments,
            success_message="Assessment deleted successfully",
            error_prefix="Error deleting assessment: ",
        )
        if outcome.refreshed is not None:
            self.assessments = outcome.refreshed
        self.notice = outcome.message
        return outcome

    def open_create(self) -> None:
        self.require_session()
        self.context.navigator.push("/examiner/create")


class UserManagementView(GuardedView):
    """Users by role, account creation/deletion and per-user reports."""

    path = "/admin/users"

    def __init__(self, context: PortalContext) -> None:
        super().__init__(context)
        self.users: list[User] = []
        self.groups = UserGroups()
        self.mutations = MutationCoordinator()

        self.selected_user: User | None = None
        self.user_results: list[Result] = []
        self.fetching_results = False

    async def load(self) -> None:
        self._show(await self.client.fetch_users())

    def _show(self, users: list[User]) -> None:
        self.users = users
        self.groups = partition_users(users)

    def _find(self, user_id: str) -> User:
        user = next((u for u in self.users if u.id == user_id), None)
        if user is None:
            raise ValueError(f"User {user_id} is not listed")
        return user

    async def create_user(
        self, *, name: str, email: str, role: str = "examiner"
    ) -> MutationOutcome[list[User]]:
        self.require_session()
        try:
            form = parse_form(NewUserForm, name=name, email=email, role=role)
        except FormValidationError as exc:
            self.notice = str(exc)
            return MutationOutcome(ok=False, message=str(exc))

        outcome = await self.mutations.run(
            lambda: self.client.create_user(
                name=form.name, email=form.email, role=form.role.value
            ),
            refresh=self.client.fetch_users,
            success_message="User created successfully!",
        )
        if outcome.refreshed is not None:
            self._show(outcome.refreshed)
        self.notice = outcome.message
        return outcome

    def request_delete(self, user_id: str) -> ConfirmationRequest:
        return user_deletion_request(self._find(user_id))

    async def confirm_delete(
        self, request: ConfirmationRequest, accepted: bool
    ) -> MutationOutcome[list[User]]:
        admin = self.require_session()
        outcome = await self.mutations.run_confirmed(
            request,
            accepted,
            lambda: self.client.delete_user(request.target_id, admin_id=admin.id),
            refresh=self.client.fetch_users,
            success_message=str,
            error_prefix="Error: ",
        )
        if outcome.refreshed is not None:
            self._show(outcome.refreshed)
        self.notice = outcome.message
        return outcome

    async def view_reports(self, user_id: str) -> list[Result]:
        self.require_session()
        self.selected_user = self._find(user_id)
        self.user_results = []
        self.fetching_results = True
        try:
            self.user_results = await self.client.fetch_results(user_id=user_id)
        except PortalClientError as exc:
            self.error = str(exc)
        finally:
            self.fetching_results = False
        return self.user_results

    @property
    def report_stats(self) -> ResultStats:
        return result_stats(self.user_results)

    def close_reports(self) -> None:
        self.selected_user = None
        self.user_results = []

    def export_report(self, directory: Path | None = None) -> Path:
        self.require_session()
        if self.selected_user is None:
            raise EmptyReportError("No user selected")
        target = directory if directory is not None else self.context.settings.report_dir
        return export_user_report(
            self.selected_user,
            self.user_results,
            target,
            clock=self.context.sessions.clock,
        )
