from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp from the backend, tolerating a trailing ``Z``."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(slots=True)
class Session:
    """Locally cached authenticated identity used for route gating."""

    id: str
    name: str
    email: str
    role: str
    is_first_login: bool = False
    logged_in_at: datetime | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Session:
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or ""),
            role=str(payload["role"]),
            is_first_login=bool(payload.get("is_first_login", False)),
            logged_in_at=parse_timestamp(payload.get("logged_in_at")),
        )

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["logged_in_at"] = self.logged_in_at.isoformat() if self.logged_in_at else None
        return payload


@dataclass(slots=True)
class User:
    """A portal account as listed by the admin endpoints."""

    id: str
    name: str
    email: str
    role: str
    created_at: datetime | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> User:
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or ""),
            role=str(payload.get("role") or ""),
            created_at=parse_timestamp(payload.get("created_at")),
        )


@dataclass(slots=True)
class Candidate:
    """Assignable candidate returned by the examiner endpoints."""

    id: str
    name: str
    email: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Candidate:
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or ""),
        )


@dataclass(slots=True)
class Assessment:
    """Assessment as listed on the dashboards."""

    id: str
    title: str
    description: str | None = None
    created_at: datetime | None = None
    assigned_to: list[str] = field(default_factory=list)
    duration_minutes: int | None = None
    time_per_question: int | None = None
    difficulty: str | None = None
    scheduled_from: datetime | None = None
    scheduled_to: datetime | None = None
    status: str | None = None
    questions_count: int = 0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Assessment:
        duration = payload.get("duration_minutes")
        per_question = payload.get("time_per_question")
        return cls(
            id=str(payload["id"]),
            title=str(payload.get("title") or ""),
            description=payload.get("description"),
            created_at=parse_timestamp(payload.get("created_at")),
            assigned_to=[str(item) for item in payload.get("assigned_to") or []],
            duration_minutes=_as_int(duration) if duration is not None else None,
            time_per_question=_as_int(per_question) if per_question is not None else None,
            difficulty=payload.get("difficulty"),
            scheduled_from=parse_timestamp(
                payload.get("scheduled_from") or payload.get("scheduled_for")
            ),
            scheduled_to=parse_timestamp(payload.get("scheduled_to")),
            status=payload.get("status"),
            questions_count=_as_int(payload.get("questions_count")),
        )


@dataclass(slots=True)
class Result:
    """Graded attempt; ``percentage`` always agrees with score/max_score."""

    assessment_id: str
    assessment_title: str
    score: float
    max_score: float
    percentage: int
    attempt_number: int = 1
    graded_at: datetime | None = None

    @staticmethod
    def derive_percentage(score: float, max_score: float, fallback: Any = None) -> int:
        if max_score > 0:
            return round_half_up(score / max_score * 100)
        return round_half_up(_as_float(fallback))

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Result:
        score = _as_float(payload.get("score"))
        max_score = _as_float(payload.get("max_score"))
        return cls(
            assessment_id=str(payload.get("assessment_id") or ""),
            assessment_title=str(payload.get("assessment_title") or ""),
            score=score,
            max_score=max_score,
            percentage=cls.derive_percentage(score, max_score, payload.get("percentage")),
            attempt_number=_as_int(payload.get("attempt_number"), default=1) or 1,
            graded_at=parse_timestamp(payload.get("graded_at")),
        )


@dataclass(slots=True)
class ExaminerOverview:
    """Payload of the examiner dashboard endpoint."""

    assessments: list[Assessment]
    total_candidates: int = 0
    avg_score: float = 0.0


@dataclass(slots=True)
class AuthResult:
    """Outcome of a login call."""

    user: dict[str, Any]
    is_first_login: bool = False
