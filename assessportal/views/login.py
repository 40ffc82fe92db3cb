"""Entry view: sign-in and the first-login password change."""

from __future__ import annotations

import structlog
from assessportal.core.guards import home_path_for
from assessportal.domain.forms import FormValidationError, LoginForm, PasswordResetForm, parse_form
from assessportal.domain.models import Session
from assessportal.libs.portal_client import PortalClientError
from assessportal.views.base import PortalContext

logger = structlog.get_logger()


class LoginView:
    """Sign-in form. Errors are kept inline in ``error``; nothing is raised."""

    def __init__(self, context: PortalContext) -> None:
        self.context = context
        self.loading = False
        self.error: str | None = None
        self.pending: Session | None = None
        self._password: str | None = None

    @property
    def reset_required(self) -> bool:
        return self.pending is not None

    async def submit(self, email: str, password: str) -> str | None:
        """Authenticate; returns the landing path, or ``None`` when staying here."""
        self.error = None
        try:
            form = parse_form(LoginForm, email=email, password=password)
        except FormValidationError as exc:
            self.error = str(exc)
            return None

        self.loading = True
        try:
            auth = await self.context.client.authenticate(form.email, form.password)
        except PortalClientError as exc:
            self.error = str(exc)
            await logger.awarning("login_failed", email=email, error=self.error)
            return None
        finally:
            self.loading = False

        try:
            session = self.context.sessions.session_from_user(auth.user)
        except KeyError:
            self.error = "Authentication failed"
            return None

        if auth.is_first_login or session.is_first_login:
            # Held back until the password has been changed.
            self.pending = session
            self._password = password
            await logger.ainfo("login_first_login", user_id=session.id)
            return None

        self.context.sessions.save(session)
        await logger.ainfo("login_success", user_id=session.id, role=session.role)
        return self._enter(session)

    async def reset_password(self, new_password: str, confirm_password: str) -> str | None:
        if self.pending is None or self._password is None:
            self.error = "No password reset in progress"
            return None

        self.error = None
        try:
            parse_form(
                PasswordResetForm,
                new_password=new_password,
                confirm_password=confirm_password,
            )
        except FormValidationError as exc:
            self.error = str(exc)
            return None

        self.loading = True
        try:
            await self.context.client.reset_password(
                self.pending.id, self._password, new_password
            )
        except PortalClientError as exc:
            # TODO: add a lockout once the backend defines a retry policy.
            self.error = str(exc)
            return None
        finally:
            self.loading = False

        session = self.context.sessions.complete_password_reset(self.pending)
        self.pending = None
        self._password = None
        await logger.ainfo("password_reset_completed", user_id=session.id)
        return self._enter(session)

    def _enter(self, session: Session) -> str:
        destination = home_path_for(session.role)
        self.context.navigator.push(destination)
        return destination
