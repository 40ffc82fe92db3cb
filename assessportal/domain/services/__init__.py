"""Domain services."""

from assessportal.domain.services.aggregator import (
    PaginatedList,
    ResultStats,
    UserGroups,
    filter_by_status,
    paginate,
    partition_users,
    result_stats,
)
from assessportal.domain.services.mutations import (
    AssessmentDraft,
    AssessmentSubmission,
    ConfirmationRequest,
    MutationCoordinator,
    MutationOutcome,
)
from assessportal.domain.services.reports import EmptyReportError, export_user_report

__all__ = [
    "AssessmentDraft",
    "AssessmentSubmission",
    "ConfirmationRequest",
    "EmptyReportError",
    "MutationCoordinator",
    "MutationOutcome",
    "PaginatedList",
    "ResultStats",
    "UserGroups",
    "export_user_report",
    "filter_by_status",
    "paginate",
    "partition_users",
    "result_stats",
]
