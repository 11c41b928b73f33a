import logging

from starlette.concurrency import run_in_threadpool

from app.core.errors import AuthError, ScreenBusy
from app.modules.auth.schemas import AuthScreenState
from app.modules.sessions.provider import SessionProvider

logger = logging.getLogger(__name__)

CONFIRM_EMAIL_MESSAGE = "Check your email for the confirmation link!"
SIGN_UP_SUCCESS_MESSAGE = "Sign up successful! Please check your email for verification."


class AuthScreen:
    """Sign-in / sign-up form state.

    Neither operation touches session state: a successful sign-in shows up
    through the provider's change stream, which the SessionController follows.
    """

    def __init__(self, provider: SessionProvider):
        self.provider = provider
        self.loading = False
        self.message = ""

    def state(self) -> AuthScreenState:
        return AuthScreenState(loading=self.loading, message=self.message)

    def _begin(self) -> None:
        if self.loading:
            raise ScreenBusy("An authentication request is already in progress")
        self.loading = True
        self.message = ""

    async def sign_in(self, email: str, password: str) -> AuthScreenState:
        self._begin()
        try:
            await run_in_threadpool(self.provider.sign_in, email, password)
        except AuthError as e:
            logger.info(f"Sign-in failed for {email}: {e.message}")
            self.message = e.message
        finally:
            self.loading = False
        return self.state()

    async def sign_up(self, email: str, password: str) -> AuthScreenState:
        self._begin()
        try:
            user = await run_in_threadpool(self.provider.sign_up, email, password)
            if user is not None and not user.confirmed:
                self.message = CONFIRM_EMAIL_MESSAGE
            else:
                self.message = SIGN_UP_SUCCESS_MESSAGE
        except AuthError as e:
            logger.info(f"Sign-up failed for {email}: {e.message}")
            self.message = e.message
        finally:
            self.loading = False
        return self.state()
