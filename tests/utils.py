from __future__ import annotations

from assessportal.core.session import SessionStore
from assessportal.domain.models import Result, Session, User

from tests.fake_backend import BackendState


def sign_in(sessions: SessionStore, backend: BackendState, user_id: str) -> Session:
    """Store a session for one of the backend's seeded users."""
    payload = next(user for user in backend.users if user["id"] == user_id)
    session = sessions.session_from_user(payload)
    sessions.save(session)
    return session


def make_result(title: str, score: float, max_score: float = 10, attempt: int = 1) -> Result:
    return Result.from_payload(
        {
            "assessment_id": title.lower().replace(" ", "-"),
            "assessment_title": title,
            "score": score,
            "max_score": max_score,
            "attempt_number": attempt,
            "graded_at": "2025-03-01T11:00:00Z",
        }
    )


def make_user(user_id: str, role: str, name: str | None = None) -> User:
    name = name or f"User {user_id}"
    return User(id=user_id, name=name, email=f"{user_id}@example.com", role=role)
