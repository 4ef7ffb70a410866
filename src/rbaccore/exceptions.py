"""Exception hierarchy for rbaccore.

Every error raised by the decoration layer inherits from RbacError and
carries a stable error code.

Usage:
    from rbaccore.exceptions import (
        RbacError,
        MalformedIdentifier,
        BackendUnavailable,
    )

The orchestrator never lets these escape ``decorate()``; they exist so the
failure that aborted a decoration attempt is logged with a precise code.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "RbacError",
    "ConfigurationError",
    "MalformedIdentifier",
    "MalformedListing",
    "BackendUnavailable",
    "DigestUnavailable",
]


# ---- Exception Hierarchy ----------------------------------------------------


class RbacError(Exception):
    """Base exception for the RBAC decoration layer.

    Attributes:
        code: Stable error code string (e.g. "BACKEND_UNAVAILABLE").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(RbacError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"
    message: str = "Invalid configuration"


class MalformedIdentifier(RbacError):
    """Entity identifier could not be parsed into domain and properties."""

    code: str = "MALFORMED_IDENTIFIER"
    message: str = "Malformed entity identifier"


class MalformedListing(RbacError):
    """Entity tree does not have the expected shape."""

    code: str = "MALFORMED_LISTING"
    message: str = "Malformed entity listing"


class BackendUnavailable(RbacError):
    """Policy store or permission backend is missing or failed."""

    code: str = "BACKEND_UNAVAILABLE"
    message: str = "Backend unavailable"


class DigestUnavailable(RbacError):
    """Configured hash algorithm is not provided by the runtime."""

    code: str = "DIGEST_UNAVAILABLE"
    message: str = "Digest algorithm unavailable"

