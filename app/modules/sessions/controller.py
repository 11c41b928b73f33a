"""
Session Controller: owns the single Session value and decides which screen
is shown.

    unknown --(initial query / first event)--> anonymous | authenticated(session)

Every change event replaces the state wholesale (last writer wins). The
initial query only applies while still ``unknown``; once an event has been
seen it is stale.
"""
import asyncio
import logging
import threading
from typing import Callable, List, Optional

from starlette.concurrency import run_in_threadpool

from app.modules.auth.screen import AuthScreen
from app.modules.profiles.screen import ProfileScreen
from app.modules.sessions.provider import SessionProvider
from app.modules.sessions.schemas import Session, SessionState

logger = logging.getLogger(__name__)

ProfileScreenFactory = Callable[[Session], ProfileScreen]
StateListener = Callable[[SessionState, Optional[Session]], None]


class SessionController:
    def __init__(self, provider: SessionProvider, profile_screen_factory: ProfileScreenFactory):
        self.provider = provider
        self.profile_screen_factory = profile_screen_factory
        self.state = SessionState.UNKNOWN
        self.session: Optional[Session] = None
        self.auth_screen: Optional[AuthScreen] = None
        self.profile_screen: Optional[ProfileScreen] = None
        self.bootstrap_task: Optional[asyncio.Task] = None
        self._listeners: List[StateListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[int] = None

    @property
    def screen(self) -> str:
        if self.state is SessionState.AUTHENTICATED:
            return "profile"
        if self.state is SessionState.ANONYMOUS:
            return "auth"
        return "loading"

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def start(self) -> None:
        """Subscribe to session changes, then query the current session once."""
        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self._unsubscribe = self.provider.on_session_change(self._on_session_change)
        session = await run_in_threadpool(self.provider.get_current_session)
        if self.state is SessionState.UNKNOWN:
            self.apply(session)
        else:
            logger.debug("Initial session query superseded by a change event")

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.profile_screen is not None:
            self.profile_screen.close()
        if self.bootstrap_task is not None and not self.bootstrap_task.done():
            self.bootstrap_task.cancel()

    def _on_session_change(self, event: str, session: Optional[Session]) -> None:
        logger.info(f"Auth state change: {event}")
        if self._loop is None or threading.get_ident() == self._loop_thread:
            self.apply(session)
        else:
            self._loop.call_soon_threadsafe(self.apply, session)

    def apply(self, session: Optional[Session]) -> None:
        """Replace the current state with `session` (None means signed out)."""
        previous = self.session
        self.session = session

        if session is None:
            if self.profile_screen is not None:
                self.profile_screen.close()
                self.profile_screen = None
            if self.state is not SessionState.ANONYMOUS or self.auth_screen is None:
                self.auth_screen = AuthScreen(self.provider)
            self.state = SessionState.ANONYMOUS
        else:
            self.auth_screen = None
            self.state = SessionState.AUTHENTICATED
            same_user = previous is not None and previous.user_identity == session.user_identity
            if same_user and self.profile_screen is not None:
                self.profile_screen.session = session
            else:
                self._mount_profile_screen(session)

        logger.info(f"Session state: {self.state.value}")
        for listener in list(self._listeners):
            listener(self.state, session)

    def _mount_profile_screen(self, session: Session) -> None:
        if self.profile_screen is not None:
            self.profile_screen.close()
        self.profile_screen = self.profile_screen_factory(session)
        self.bootstrap_task = asyncio.get_running_loop().create_task(self.profile_screen.load())
        self.bootstrap_task.add_done_callback(self._bootstrap_done)

    def _bootstrap_done(self, task: asyncio.Task) -> None:
        # Replaced tasks are never awaited
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Profile bootstrap failed: {exc}", exc_info=exc)

    async def wait_for_profile(self) -> None:
        """Wait for the current profile bootstrap, if any, to settle."""
        task = self.bootstrap_task
        if task is not None and not task.done():
            await task
