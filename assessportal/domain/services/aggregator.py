"""
Display-state derivation for the dashboards.

Everything here is pure: inputs are gateway outputs, nothing touches the
network, and no input sequence is mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

import structlog
from assessportal.core.guards import Role
from assessportal.domain.models import Assessment, ExaminerOverview, Result, User, round_half_up

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 4


@dataclass(slots=True)
class UserGroups:
    """Users split by role; ``unassigned`` holds roles the portal does not know."""

    candidates: list[User] = field(default_factory=list)
    examiners: list[User] = field(default_factory=list)
    admins: list[User] = field(default_factory=list)
    unassigned: list[User] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "candidates": len(self.candidates),
            "examiners": len(self.examiners),
            "admins": len(self.admins),
        }


@dataclass(slots=True, frozen=True)
class ResultStats:
    count: int
    average: int
    maximum: int | None


@dataclass(slots=True, frozen=True)
class ExaminerStats:
    total_assessments: int
    total_candidates: int
    avg_score: int


def partition_users(users: Iterable[User]) -> UserGroups:
    groups = UserGroups()
    buckets = {
        Role.CANDIDATE.value: groups.candidates,
        Role.EXAMINER.value: groups.examiners,
        Role.ADMIN.value: groups.admins,
    }
    for user in users:
        bucket = buckets.get(user.role)
        if bucket is None:
            logger.warning("user_role_unrecognised", user_id=user.id, role=user.role)
            groups.unassigned.append(user)
        else:
            bucket.append(user)
    return groups


def result_stats(results: Sequence[Result]) -> ResultStats:
    """Count, rounded average percentage and best percentage.

    ``maximum`` is ``None`` for an empty list; check ``count`` first.
    """
    count = len(results)
    if count == 0:
        return ResultStats(count=0, average=0, maximum=None)

    percentages = [result.percentage for result in results]
    return ResultStats(
        count=count,
        average=round_half_up(sum(percentages) / count),
        maximum=max(percentages),
    )


def examiner_stats(overview: ExaminerOverview) -> ExaminerStats:
    return ExaminerStats(
        total_assessments=len(overview.assessments),
        total_candidates=overview.total_candidates,
        avg_score=round_half_up(overview.avg_score),
    )


def filter_by_status(assessments: Iterable[Assessment], status: str) -> list[Assessment]:
    """Assessments whose backend-supplied status equals ``status``."""
    return [assessment for assessment in assessments if assessment.status == status]


def paginate(items: Sequence[T], expanded: bool, page_size: int = DEFAULT_PAGE_SIZE) -> list[T]:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    if expanded:
        return list(items)
    return list(items[:page_size])


class PaginatedList(Generic[T]):
    """Ordered list shown either as its first ``page_size`` items or in full."""

    def __init__(self, items: Iterable[T] = (), *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._items: tuple[T, ...] = tuple(items)
        self.page_size = page_size
        self.expanded = False

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def visible(self) -> list[T]:
        return paginate(self._items, self.expanded, self.page_size)

    @property
    def has_more(self) -> bool:
        """Whether a show-more control is needed at all."""
        return len(self._items) > self.page_size

    @property
    def hidden_count(self) -> int:
        return len(self._items) - len(self.visible)

    def toggle(self) -> bool:
        self.expanded = not self.expanded
        return self.expanded

    def replace(self, items: Iterable[T]) -> None:
        """Swap in a refreshed list; the expanded flag is kept."""
        self._items = tuple(items)

    def __len__(self) -> int:
        return len(self._items)


def score_band(percentage: float) -> str:
    if percentage >= 70:
        return "high"
    if percentage >= 40:
        return "medium"
    return "low"


def format_date(value: datetime | None, *, empty: str = "Not scheduled") -> str:
    """Short display date, e.g. ``Jan 5, 2025``."""
    if value is None:
        return empty
    return f"{value.strftime('%b')} {value.day}, {value.year}"
