"""Error taxonomy for finadmin.

Each error carries the HTTP status the API layer answers with:
- NotFoundError: entity absent (404)
- ConflictError: duplicate unique key (400)
- AuthError: credential problem (401, or 404 for an unknown principal)
- TransientStoreError: store unavailable or timed out (500, safe to retry)
- ValidationError: malformed input (400)
"""

from __future__ import annotations

from typing import Literal

AuthReason = Literal["not_found", "invalid_password", "invalid", "expired", "missing"]


class FinAdminError(Exception):
    """Base class for all finadmin errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FinAdminError):
    """Requested entity does not exist."""

    status_code = 404


class ConflictError(FinAdminError):
    """Unique-key violation at the store."""

    status_code = 400


class ValidationError(FinAdminError):
    """Malformed input."""

    status_code = 400


class TransientStoreError(FinAdminError):
    """Store unavailable or timed out."""

    status_code = 500


class AuthError(FinAdminError):
    """Credential could not be issued or verified."""

    def __init__(self, message: str, reason: AuthReason):
        super().__init__(message)
        self.reason = reason

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 404 if self.reason == "not_found" else 401
