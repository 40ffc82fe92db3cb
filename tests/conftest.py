from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest
from assessportal.core.config import Settings
from assessportal.core.session import MemoryStorage, SessionStore
from assessportal.libs.portal_client import PortalClient
from assessportal.views import Navigator, PortalContext

from tests.fake_backend import BackendState, create_backend, seeded_state

FIXED_NOW = datetime(2025, 4, 10, 12, 0, tzinfo=UTC)


@pytest.fixture()
def backend() -> BackendState:
    return seeded_state()


@pytest.fixture()
def portal_client(backend: BackendState) -> PortalClient:
    transport = httpx.ASGITransport(app=create_backend(backend))
    return PortalClient(base_url="http://test", timeout_seconds=5, transport=transport)


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def sessions(storage: MemoryStorage) -> SessionStore:
    return SessionStore(storage, clock=lambda: FIXED_NOW)


@pytest.fixture()
def context(sessions: SessionStore, portal_client: PortalClient, tmp_path) -> PortalContext:
    settings = Settings(PAGE_SIZE=4, REPORT_DIR=str(tmp_path))
    return PortalContext(
        sessions=sessions,
        client=portal_client,
        navigator=Navigator(),
        settings=settings,
    )
