"""
Error taxonomy shared by the screens and the Supabase-facing wrappers.

Remote failures are converted into these types at the wrapper boundary so the
screens never inspect raw PostgREST/GoTrue/Storage error shapes.
"""

from enum import Enum
from typing import Optional

import httpx

# PostgREST: `.single()` matched zero (or many) rows
POSTGREST_NO_ROWS = "PGRST116"
# Postgres: unique_violation
PG_UNIQUE_VIOLATION = "23505"


class StoreErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSIENT = "transient"
    UNKNOWN = "unknown"


class StoreError(Exception):
    """A Profile Store call failed."""

    def __init__(self, message: str, kind: StoreErrorKind = StoreErrorKind.UNKNOWN):
        super().__init__(message)
        self.message = message
        self.kind = kind


class ProfileNotFound(StoreError):
    """No profile row exists yet; triggers bootstrap, never shown as a failure."""

    def __init__(self, message: str = "Profile not found"):
        super().__init__(message, StoreErrorKind.NOT_FOUND)


class ProfileWriteError(StoreError):
    """Insert, upsert or field update was rejected."""


class AuthError(Exception):
    """Sign-in, sign-up or sign-out failed at the auth provider."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UploadError(Exception):
    """Writing an avatar blob failed."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UrlResolutionError(Exception):
    """A stored path could not be turned into a public URL."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ScreenBusy(Exception):
    """An action was requested while the screen already has one in flight."""


def error_message(exc: BaseException) -> str:
    """Human-readable text of a remote exception."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


def error_code(exc: BaseException) -> Optional[str]:
    code = getattr(exc, "code", None)
    return str(code) if code is not None else None


def classify_store_error(exc: BaseException) -> StoreErrorKind:
    """Map a PostgREST/transport exception onto a StoreErrorKind."""
    if isinstance(exc, StoreError):
        return exc.kind
    if isinstance(exc, httpx.TransportError):
        return StoreErrorKind.TRANSIENT
    code = error_code(exc)
    if code == POSTGREST_NO_ROWS:
        return StoreErrorKind.NOT_FOUND
    if code == PG_UNIQUE_VIOLATION:
        return StoreErrorKind.CONFLICT
    return StoreErrorKind.UNKNOWN
