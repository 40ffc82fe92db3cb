from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

import structlog
from assessportal.domain.models import Session

logger = structlog.get_logger()

ENTRY_PATH = "/"


class Role(str, Enum):
    CANDIDATE = "candidate"
    EXAMINER = "examiner"
    ADMIN = "admin"

    @classmethod
    def contains(cls, value: str) -> bool:
        return value in {role.value for role in cls}


@dataclass(slots=True, frozen=True)
class Render:
    """Guard passed; the view may load and render for this session."""

    session: Session


@dataclass(slots=True, frozen=True)
class Redirect:
    """Guard failed; navigate away without rendering anything."""

    to: str = ENTRY_PATH
    reason: str = ""


GuardDecision = Render | Redirect


class RouteGuard:
    """Role gate evaluated once per view activation."""

    def __init__(self, required_roles: Iterable[Role | str]) -> None:
        roles = [role.value if isinstance(role, Role) else role for role in required_roles]

        invalid_roles = [role for role in roles if not Role.contains(role)]
        if invalid_roles:
            joined_roles = ", ".join(invalid_roles)
            raise ValueError(f"Unsupported role(s) requested: {joined_roles}")
        if not roles:
            raise ValueError("At least one role is required")

        self.required: frozenset[str] = frozenset(roles)

    def evaluate(self, session: Session | None) -> GuardDecision:
        if session is None:
            logger.info("guard_redirect", reason="no_session")
            return Redirect(reason="no_session")

        if session.role not in self.required:
            logger.info(
                "guard_redirect",
                reason="role_not_allowed",
                role=session.role,
                required=sorted(self.required),
            )
            return Redirect(reason="role_not_allowed")

        return Render(session=session)


def home_path_for(role: str) -> str:
    """Landing view for a freshly authenticated role."""
    if role == Role.CANDIDATE.value:
        return "/candidate/dashboard"
    if role == Role.ADMIN.value:
        return "/admin"
    return "/examiner/dashboard"


# Route table of the portal's protected views.
ROUTE_ROLES: dict[str, frozenset[Role]] = {
    "/admin": frozenset({Role.ADMIN}),
    "/admin/users": frozenset({Role.EXAMINER, Role.ADMIN}),
    "/examiner/create": frozenset({Role.ADMIN}),
    "/examiner/dashboard": frozenset({Role.EXAMINER}),
    "/candidate/dashboard": frozenset({Role.CANDIDATE}),
}


def guard_for(path: str) -> RouteGuard:
    try:
        roles = ROUTE_ROLES[path]
    except KeyError as exc:
        raise ValueError(f"Unknown protected route: {path}") from exc
    return RouteGuard(roles)
