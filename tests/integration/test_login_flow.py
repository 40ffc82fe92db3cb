"""Integration tests for the entry view against the fake backend."""

from __future__ import annotations

import pytest
from assessportal.core.session import MemoryStorage
from assessportal.views import LoginView, PortalContext

from tests.fake_backend import BackendState


class TestLogin:
    @pytest.mark.asyncio
    async def test_wrong_password_shows_backend_error_and_stores_nothing(
        self, context: PortalContext, storage: MemoryStorage
    ) -> None:
        view = LoginView(context)

        destination = await view.submit("a@x.com", "wrong")

        assert destination is None
        assert view.error == "Invalid credentials"
        assert context.sessions.load() is None
        assert storage.get_item("user") is None
        assert context.navigator.current == "/"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("email", "home"),
        [
            ("ada@example.com", "/admin"),
            ("eve@example.com", "/examiner/dashboard"),
            ("cara@example.com", "/candidate/dashboard"),
        ],
    )
    async def test_success_persists_session_and_navigates_by_role(
        self, context: PortalContext, email: str, home: str
    ) -> None:
        view = LoginView(context)

        destination = await view.submit(email, "secret123")

        assert destination == home
        assert context.navigator.current == home
        session = context.sessions.load()
        assert session is not None
        assert session.email == email
        assert view.error is None

    @pytest.mark.asyncio
    async def test_reserved_domain_address_can_sign_in(
        self, context: PortalContext, backend: BackendState
    ) -> None:
        backend.add_user("admin-2", "Lab Admin", "admin", email="lab@portal.local")
        view = LoginView(context)

        destination = await view.submit("lab@portal.local", "secret123")

        assert destination == "/admin"
        assert view.error is None
        assert backend.calls == ["POST /auth/login"]

    @pytest.mark.asyncio
    async def test_invalid_email_is_rejected_before_backend(
        self, context: PortalContext, backend: BackendState
    ) -> None:
        view = LoginView(context)

        assert await view.submit("not-an-email", "secret123") is None
        assert view.error
        assert backend.calls == []


class TestFirstLoginReset:
    @pytest.mark.asyncio
    async def test_first_login_holds_session_until_reset(
        self, context: PortalContext, backend: BackendState
    ) -> None:
        view = LoginView(context)

        assert await view.submit("cole@example.com", "secret123") is None
        assert view.reset_required
        assert context.sessions.load() is None

        destination = await view.reset_password("new-secret", "new-secret")

        assert destination == "/candidate/dashboard"
        session = context.sessions.load()
        assert session is not None
        assert session.is_first_login is False
        assert backend.passwords["cole@example.com"] == "new-secret"
        assert not view.reset_required

    @pytest.mark.asyncio
    async def test_mismatched_confirmation_never_calls_backend(
        self, context: PortalContext, backend: BackendState
    ) -> None:
        view = LoginView(context)
        await view.submit("cole@example.com", "secret123")
        calls_before = list(backend.calls)

        assert await view.reset_password("new-secret", "other-secret") is None

        assert view.error == "Passwords do not match"
        assert backend.calls == calls_before
        assert view.reset_required

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, context: PortalContext) -> None:
        view = LoginView(context)
        await view.submit("cole@example.com", "secret123")

        assert await view.reset_password("abc", "abc") is None
        assert view.error == "Password must be at least 6 characters"

    @pytest.mark.asyncio
    async def test_backend_reset_failure_keeps_reset_open(
        self, context: PortalContext, backend: BackendState
    ) -> None:
        view = LoginView(context)
        await view.submit("cole@example.com", "secret123")
        backend.failures["POST /auth/reset-password"] = (500, {"error": "Reset service down"})

        assert await view.reset_password("new-secret", "new-secret") is None

        assert view.error == "Reset service down"
        assert view.reset_required
        assert context.sessions.load() is None

    @pytest.mark.asyncio
    async def test_reset_without_pending_login(self, context: PortalContext) -> None:
        view = LoginView(context)

        assert await view.reset_password("new-secret", "new-secret") is None
        assert view.error == "No password reset in progress"
