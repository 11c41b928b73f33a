"""
Session Provider backed by Supabase Auth (GoTrue).

Supabase Auth provides:
- auth.get_session() - Current session held by the client, if any
- auth.on_auth_state_change() - Stream of SIGNED_IN / SIGNED_OUT / TOKEN_REFRESHED events
- auth.sign_in_with_password() - Authenticate users
- auth.sign_up() - Register new users (confirmation email is sent by Supabase)
- auth.sign_out() - Drop the session
"""
import logging
from typing import Callable, Optional

from supabase import Client

from app.core.errors import AuthError, error_message
from app.modules.sessions.schemas import AuthUser, Session

logger = logging.getLogger(__name__)

SessionCallback = Callable[[str, Optional[Session]], None]


class SessionProvider:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_session(self) -> Optional[Session]:
        """Return the client's current session, or None when signed out."""
        try:
            return Session.from_auth(self.supabase.auth.get_session())
        except Exception as e:
            logger.warning(f"Could not read current session: {error_message(e)}")
            return None

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Subscribe to auth state changes. Returns the unsubscribe handle."""

        def _handler(event, auth_session):
            callback(str(event), Session.from_auth(auth_session))

        subscription = self.supabase.auth.on_auth_state_change(_handler)
        return subscription.unsubscribe

    def sign_in(self, email: str, password: str) -> None:
        try:
            self.supabase.auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except Exception as e:
            raise AuthError(error_message(e)) from e

    def sign_up(self, email: str, password: str) -> Optional[AuthUser]:
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": email,
                "password": password
            })
        except Exception as e:
            raise AuthError(error_message(e)) from e
        return AuthUser.from_auth(getattr(auth_response, "user", None))

    def sign_out(self) -> None:
        try:
            self.supabase.auth.sign_out()
        except Exception as e:
            raise AuthError(error_message(e)) from e
