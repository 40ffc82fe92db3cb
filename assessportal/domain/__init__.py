from assessportal.domain.models import (
    Assessment,
    AuthResult,
    Candidate,
    ExaminerOverview,
    Result,
    Session,
    User,
)

__all__ = [
    "Assessment",
    "AuthResult",
    "Candidate",
    "ExaminerOverview",
    "Result",
    "Session",
    "User",
]
