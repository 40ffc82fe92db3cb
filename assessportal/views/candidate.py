from __future__ import annotations

from assessportal.domain.models import Assessment, Result
from assessportal.domain.services.aggregator import (
    PaginatedList,
    ResultStats,
    filter_by_status,
    result_stats,
)
from assessportal.views.base import GuardedView, PortalContext

UPCOMING = "upcoming"


class CandidateDashboardView(GuardedView):
    """Upcoming assessments and past results of the signed-in candidate."""

    path = "/candidate/dashboard"

    def __init__(self, context: PortalContext) -> None:
        super().__init__(context)
        self.assessments: list[Assessment] = []
        self.upcoming: PaginatedList[Assessment] = PaginatedList(page_size=self.page_size)
        self.results: PaginatedList[Result] = PaginatedList(page_size=self.page_size)

    async def load(self) -> None:
        session = self.require_session()
        assessments = await self.client.fetch_candidate_assessments(session.id)
        results = await self.client.fetch_candidate_results(session.id)

        self.assessments = assessments
        self.upcoming.replace(filter_by_status(assessments, UPCOMING))
        self.results.replace(results)

    @property
    def stats(self) -> ResultStats:
        return result_stats(self.results.items)

    @property
    def upcoming_count(self) -> int:
        return len(self.upcoming)

    @property
    def completed_count(self) -> int:
        return len(self.results)
