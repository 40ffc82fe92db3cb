"""
HTTP gateway for the assessment portal REST backend.

One coroutine per backend resource. Calls are single-shot: no retries and
no caching beyond the response handed back to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from assessportal.core.config import get_settings
from assessportal.domain.models import (
    Assessment,
    AuthResult,
    Candidate,
    ExaminerOverview,
    Result,
    User,
)

logger = structlog.get_logger(__name__)


class PortalClientError(Exception):
    """Base exception for portal gateway errors."""


class PortalAPIError(PortalClientError):
    """Raised for non-success responses from the backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PortalTransportError(PortalClientError):
    """Raised when the backend cannot be reached."""


@dataclass(slots=True)
class UploadedFile:
    """Source document attached to an assessment in upload mode."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def error_message(response: httpx.Response, fallback: str) -> str:
    """Human-readable message from an error body, else the fallback."""
    try:
        data = response.json()
    except ValueError:
        return fallback

    if isinstance(data, dict):
        for key in ("error", "details"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


class PortalClient:
    """Async client for the portal backend."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.normalized_api_url).rstrip("/")
        self.timeout = (
            timeout_seconds if timeout_seconds is not None else settings.timeout_seconds
        )
        self.transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        *,
        fallback: str,
        json: Any = None,
        params: dict[str, str] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    params=params,
                    files=files,
                )
        except httpx.RequestError as exc:
            await logger.awarning("portal_request_error", method=method, path=path, error=str(exc))
            raise PortalTransportError(f"{fallback}: {exc}") from exc

        if not response.is_success:
            message = error_message(response, fallback)
            await logger.awarning(
                "portal_api_error",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise PortalAPIError(message, status_code=response.status_code)

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as exc:
            raise PortalAPIError(
                f"Malformed response from {path}",
                status_code=response.status_code,
            ) from exc

    # --- Authentication ---

    async def authenticate(self, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            fallback="Authentication failed",
        )
        user = data.get("user") if isinstance(data, dict) else None
        if not isinstance(user, dict):
            raise PortalAPIError("Malformed response from /auth/login")
        return AuthResult(user=user, is_first_login=bool(data.get("is_first_login", False)))

    async def reset_password(self, user_id: str, old_password: str, new_password: str) -> None:
        await self._request(
            "POST",
            "/auth/reset-password",
            json={"userId": user_id, "oldPassword": old_password, "newPassword": new_password},
            fallback="Failed to reset password",
        )

    # --- Users ---

    async def create_user(self, *, name: str, email: str, role: str) -> dict[str, Any]:
        data = await self._request(
            "POST",
            "/auth/signup",
            json={"name": name, "email": email, "role": role},
            fallback="Failed to create user",
        )
        await logger.ainfo("user_created", email=email, role=role)
        return data if isinstance(data, dict) else {}

    async def fetch_users(self) -> list[User]:
        data = await self._request("GET", "/admin/users", fallback="Failed to load users")
        return [User.from_payload(item) for item in _items(data, "users")]

    async def delete_user(self, user_id: str, *, admin_id: str) -> str:
        data = await self._request(
            "DELETE",
            "/admin/users",
            json={"user_id": user_id, "admin_id": admin_id},
            fallback="Failed to delete user",
        )
        await logger.ainfo("user_deleted", user_id=user_id, admin_id=admin_id)
        message = data.get("message") if isinstance(data, dict) else None
        return message or "User deleted successfully"

    async def fetch_candidates(self) -> list[Candidate]:
        data = await self._request(
            "GET", "/examiner/candidates", fallback="Failed to load candidates"
        )
        return [Candidate.from_payload(item) for item in _items(data, "candidates")]

    # --- Assessments ---

    async def fetch_all_assessments(self) -> list[Assessment]:
        data = await self._request(
            "GET", "/admin/assessments", fallback="Failed to load assessments"
        )
        return [Assessment.from_payload(item) for item in _items(data, "assessments")]

    async def fetch_examiner_assessments(self, examiner_id: str) -> ExaminerOverview:
        data = await self._request(
            "GET",
            "/examiner/assessments",
            params={"examinerId": examiner_id},
            fallback="Failed to load assessments",
        )
        if not isinstance(data, dict):
            raise PortalAPIError("Malformed response from /examiner/assessments")
        assessments = [Assessment.from_payload(item) for item in _items(data, "assessments")]
        return ExaminerOverview(
            assessments=assessments,
            total_candidates=int(data.get("totalCandidates") or 0),
            avg_score=float(data.get("avgScore") or 0),
        )

    async def fetch_candidate_assessments(self, user_id: str) -> list[Assessment]:
        data = await self._request(
            "GET",
            "/candidate/assessments",
            params={"userId": user_id},
            fallback="Failed to load assessments",
        )
        return [Assessment.from_payload(item) for item in _items(data, "assessments")]

    async def fetch_assessments(self, *, examiner_id: str | None = None) -> list[Assessment]:
        """All assessments, or the ones created by ``examiner_id``."""
        if examiner_id is None:
            return await self.fetch_all_assessments()
        overview = await self.fetch_examiner_assessments(examiner_id)
        return overview.assessments

    async def create_assessment(
        self,
        fields: dict[str, str],
        upload: UploadedFile | None = None,
    ) -> dict[str, Any]:
        # Every field goes out as a multipart part, with or without a file.
        parts: dict[str, Any] = {
            name: (None, value.encode("utf-8")) for name, value in fields.items()
        }
        if upload is not None:
            parts["file"] = (upload.filename, upload.content, upload.content_type)

        data = await self._request(
            "POST",
            "/assessments/create",
            files=parts,
            fallback="Failed to create assessment",
        )
        await logger.ainfo("assessment_created", title=fields.get("title"))
        return data if isinstance(data, dict) else {}

    async def delete_assessment(self, assessment_id: str) -> None:
        await self._request(
            "DELETE",
            f"/assessments/{assessment_id}/delete",
            fallback="Failed to delete assessment",
        )
        await logger.ainfo("assessment_deleted", assessment_id=assessment_id)

    # --- Results ---

    async def fetch_user_results(self, user_id: str) -> list[Result]:
        data = await self._request(
            "GET", f"/admin/users/{user_id}/results", fallback="Failed to load results"
        )
        return [Result.from_payload(item) for item in _items(data, "results")]

    async def fetch_candidate_results(self, user_id: str) -> list[Result]:
        data = await self._request(
            "GET",
            "/candidate/results",
            params={"userId": user_id},
            fallback="Failed to load results",
        )
        return [Result.from_payload(item) for item in _items(data, "results")]

    async def fetch_assessment_results(self, assessment_id: str) -> list[Result]:
        data = await self._request(
            "GET",
            f"/assessments/{assessment_id}/results",
            fallback="Failed to load results",
        )
        return [Result.from_payload(item) for item in _items(data, "results")]

    async def fetch_results(
        self,
        *,
        user_id: str | None = None,
        assessment_id: str | None = None,
    ) -> list[Result]:
        """Results scoped to exactly one user or one assessment."""
        if (user_id is None) == (assessment_id is None):
            raise ValueError("Pass exactly one of user_id or assessment_id")
        if user_id is not None:
            return await self.fetch_user_results(user_id)
        return await self.fetch_assessment_results(assessment_id)  # type: ignore[arg-type]


def _items(data: Any, key: str) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        return []
    items = data.get(key) or []
    return [item for item in items if isinstance(item, dict)]
