from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from assessportal.core.config import Settings, get_settings
from assessportal.core.guards import ENTRY_PATH, Redirect, guard_for
from assessportal.core.session import SessionMissingError, SessionStore
from assessportal.domain.models import Session
from assessportal.libs.portal_client import PortalClient, PortalClientError
from structlog.contextvars import bound_contextvars

logger = structlog.get_logger()


class Navigator:
    """Records client-side navigation; ``current`` is where the user is."""

    def __init__(self, start: str = ENTRY_PATH) -> None:
        self.history: list[str] = [start]

    @property
    def current(self) -> str:
        return self.history[-1]

    def push(self, path: str) -> None:
        logger.info("navigate", path=path, previous=self.current)
        self.history.append(path)


@dataclass(slots=True)
class PortalContext:
    """Everything a view needs, passed explicitly instead of read from globals."""

    sessions: SessionStore
    client: PortalClient
    navigator: Navigator = field(default_factory=Navigator)
    settings: Settings = field(default_factory=get_settings)


class GuardedView:
    """Protected view: guard on activation, then load; failures become ``error``."""

    path: str = ""

    def __init__(self, context: PortalContext) -> None:
        self.context = context
        self.session: Session | None = None
        self.loading = False
        self.error: str | None = None
        self.notice: str | None = None

    @property
    def client(self) -> PortalClient:
        return self.context.client

    @property
    def page_size(self) -> int:
        return self.context.settings.page_size

    @property
    def rendered(self) -> bool:
        return self.session is not None

    async def activate(self) -> bool:
        """Run the role guard once, then load the view's data.

        Returns ``False`` when the guard redirected; nothing is loaded then.
        """
        decision = guard_for(self.path).evaluate(self.context.sessions.load())
        if isinstance(decision, Redirect):
            self.session = None
            self.context.navigator.push(decision.to)
            return False

        self.session = decision.session
        if self.context.navigator.current != self.path:
            self.context.navigator.push(self.path)
        with bound_contextvars(view=self.path, user_id=self.session.id):
            await self.refresh()
        return True

    async def refresh(self) -> None:
        self.loading = True
        self.error = None
        try:
            await self.load()
        except PortalClientError as exc:
            self.error = str(exc)
            await logger.awarning("view_load_failed", view=self.path, error=self.error)
        finally:
            self.loading = False

    async def load(self) -> None:
        raise NotImplementedError

    def require_session(self) -> Session:
        if self.session is None:
            raise SessionMissingError(f"{self.path} has not been activated")
        return self.session

    def logout(self) -> None:
        self.context.sessions.clear()
        self.session = None
        self.context.navigator.push(ENTRY_PATH)
