from assessportal.views.admin import AdminDashboardView, UserManagementView
from assessportal.views.base import GuardedView, Navigator, PortalContext
from assessportal.views.candidate import CandidateDashboardView
from assessportal.views.examiner import CreateAssessmentView, ExaminerDashboardView
from assessportal.views.login import LoginView

VIEWS: dict[str, type[GuardedView]] = {
    view.path: view
    for view in (
        AdminDashboardView,
        UserManagementView,
        ExaminerDashboardView,
        CreateAssessmentView,
        CandidateDashboardView,
    )
}

__all__ = [
    "VIEWS",
    "AdminDashboardView",
    "CandidateDashboardView",
    "CreateAssessmentView",
    "ExaminerDashboardView",
    "GuardedView",
    "LoginView",
    "Navigator",
    "PortalContext",
    "UserManagementView",
]
