from pydantic import BaseModel, ConfigDict
from typing import Any, Optional
from enum import Enum


class SessionState(str, Enum):
    UNKNOWN = "unknown"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class Session(BaseModel):
    """Authenticated identity plus the opaque access token issued by GoTrue."""
    model_config = ConfigDict(frozen=True)

    user_identity: str
    user_email: str
    access_token: str

    @classmethod
    def from_auth(cls, auth_session: Any) -> Optional["Session"]:
        """Build from a supabase-auth ``Session`` (or ``None``)."""
        if auth_session is None or getattr(auth_session, "user", None) is None:
            return None
        user = auth_session.user
        return cls(
            user_identity=str(user.id),
            user_email=user.email or "",
            access_token=auth_session.access_token,
        )


class AuthUser(BaseModel):
    """User returned by a sign-up call."""
    id: str
    email: Optional[str] = None
    confirmed: bool = False

    @classmethod
    def from_auth(cls, user: Any) -> Optional["AuthUser"]:
        if user is None:
            return None
        confirmed_at = getattr(user, "email_confirmed_at", None) or getattr(user, "confirmed_at", None)
        return cls(id=str(user.id), email=getattr(user, "email", None), confirmed=confirmed_at is not None)
