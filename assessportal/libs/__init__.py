"""Shared library helpers."""

from assessportal.libs.portal_client import (
    PortalAPIError,
    PortalClient,
    PortalClientError,
    PortalTransportError,
    UploadedFile,
)

__all__ = [
    "PortalAPIError",
    "PortalClient",
    "PortalClientError",
    "PortalTransportError",
    "UploadedFile",
]
