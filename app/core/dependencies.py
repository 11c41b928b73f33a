"""
Core dependencies: wiring of the Supabase-backed collaborators and screen
lookup for route handlers.
"""

from fastapi import HTTPException, Request, status
from app.database.supabase_client import get_supabase
from app.modules.auth.screen import AuthScreen
from app.modules.avatars.storage import get_avatar_storage
from app.modules.profiles.screen import ProfileScreen
from app.modules.profiles.store import ProfileStore
from app.modules.sessions.controller import SessionController
from app.modules.sessions.provider import SessionProvider
import logging

logger = logging.getLogger(__name__)


def build_session_controller() -> SessionController:
    """Controller over the process-wide Supabase client."""
    supabase = get_supabase()
    provider = SessionProvider(supabase)
    store = ProfileStore(supabase)
    storage = get_avatar_storage(supabase)

    def profile_screen_factory(session):
        return ProfileScreen(session, store, storage, provider)

    return SessionController(provider, profile_screen_factory)


def get_session_controller(request: Request) -> SessionController:
    controller = getattr(request.app.state, "session_controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session controller not started"
        )
    return controller


def get_auth_screen(request: Request) -> AuthScreen:
    """Auth screen of an anonymous controller; 409 when already signed in."""
    controller = get_session_controller(request)
    if controller.auth_screen is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already signed in" if controller.profile_screen else "Session not resolved yet"
        )
    return controller.auth_screen


def get_profile_screen(request: Request) -> ProfileScreen:
    """Profile screen of an authenticated controller; 401 otherwise."""
    controller = get_session_controller(request)
    if controller.profile_screen is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in"
        )
    return controller.profile_screen
