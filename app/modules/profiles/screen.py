"""
Profile Screen: load-or-create the signed-in user's profile, edit the
username, upload an avatar and sign out.

Every remote failure is converted into ``message`` text here; nothing
propagates to the caller except ScreenBusy.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from starlette.concurrency import run_in_threadpool

from app.core.errors import (
    AuthError, ProfileNotFound, ScreenBusy, StoreError, StoreErrorKind,
    UploadError, UrlResolutionError
)
from app.core.generation import RequestGeneration
from app.modules.avatars.storage import AvatarFile, build_avatar_path
from app.modules.profiles.schemas import ProfileScreenState
from app.modules.profiles.store import ProfileStore
from app.modules.sessions.provider import SessionProvider
from app.modules.sessions.schemas import Session

logger = logging.getLogger(__name__)

PROFILE_CREATED_MESSAGE = "Profile created automatically!"
PROFILE_UPDATED_MESSAGE = "Profile updated!"
AVATAR_UPDATED_MESSAGE = "Avatar uploaded and profile updated!"
NO_FILE_MESSAGE = "You must select an image to upload."


def default_username(email: str) -> str:
    return email.split("@")[0]


class ProfileScreen:
    def __init__(
        self,
        session: Session,
        store: ProfileStore,
        storage,
        provider: SessionProvider,
    ):
        self.session = session
        self.store = store
        self.storage = storage
        self.provider = provider
        self.username: Optional[str] = None
        self.avatar_url: Optional[str] = None
        self.message = ""
        self.loading = True
        self.uploading = False
        self.bootstrapped = False
        self._generation = RequestGeneration()

    @property
    def user_identity(self) -> str:
        return self.session.user_identity

    def state(self) -> ProfileScreenState:
        return ProfileScreenState(
            user_identity=self.session.user_identity,
            email=self.session.user_email,
            username=self.username,
            avatar_url=self.avatar_url,
            message=self.message,
            loading=self.loading,
            uploading=self.uploading,
        )

    def close(self) -> None:
        """Drop results of any bootstrap still in flight."""
        self._generation.invalidate()

    async def load(self) -> None:
        """Resolve exactly one profile for the current session."""
        token = self._generation.next()
        session = self.session
        self.loading = True
        try:
            try:
                profile = await run_in_threadpool(self.store.get, session.user_identity)
            except ProfileNotFound:
                if not self._generation.is_current(token):
                    return
                logger.info(f"No profile found for {session.user_identity}, creating a new one.")
                await self._create_profile(token, session)
                return
            except StoreError as e:
                if not self._generation.is_current(token):
                    return
                logger.warning(f"Error loading profile for {session.user_identity}: {e.message}")
                self.message = f"Error loading profile: {e.message}"
                return

            if not self._generation.is_current(token):
                logger.debug(f"Discarding stale profile load for {session.user_identity}")
                return
            self.username = profile.username
            self.avatar_url = profile.avatar_url
        finally:
            if self._generation.is_current(token):
                self.loading = False
                self.bootstrapped = True

    async def _create_profile(self, token: int, session: Session) -> None:
        username = default_username(session.user_email)
        try:
            await run_in_threadpool(self.store.insert, {
                "user_id": session.user_identity,
                "username": username,
                "avatar_url": None,
            })
        except StoreError as e:
            if not self._generation.is_current(token):
                return
            if e.kind is StoreErrorKind.CONFLICT:
                await self._load_existing(token, session)
                return
            logger.error(f"Error creating profile for {session.user_identity}: {e.message}")
            self.message = f"Error creating profile: {e.message}"
            return

        if not self._generation.is_current(token):
            return
        self.username = username
        self.avatar_url = None
        self.message = PROFILE_CREATED_MESSAGE

    async def _load_existing(self, token: int, session: Session) -> None:
        # Lost the insert race to another tab; show the row that won.
        logger.info(f"Profile for {session.user_identity} was created concurrently, loading it")
        try:
            profile = await run_in_threadpool(self.store.get, session.user_identity)
        except StoreError as e:
            if self._generation.is_current(token):
                self.message = f"Error loading profile: {e.message}"
            return
        if self._generation.is_current(token):
            self.username = profile.username
            self.avatar_url = profile.avatar_url

    def set_username(self, username: Optional[str]) -> None:
        self.username = username

    def _ensure_idle(self) -> None:
        if self.loading or self.uploading:
            raise ScreenBusy("The profile screen is busy")

    async def update_profile(self) -> ProfileScreenState:
        """Upsert the full in-memory profile, keyed on user_id."""
        self._ensure_idle()
        self.loading = True
        self.message = ""
        updates = {
            "user_id": self.session.user_identity,
            "username": self.username,
            "avatar_url": self.avatar_url,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await run_in_threadpool(self.store.upsert, updates, "user_id")
            self.message = PROFILE_UPDATED_MESSAGE
        except StoreError as e:
            logger.warning(f"Error updating profile for {self.session.user_identity}: {e.message}")
            self.message = f"Error updating profile: {e.message}"
        finally:
            self.loading = False
        return self.state()

    async def upload_avatar(self, file: Optional[AvatarFile]) -> ProfileScreenState:
        if file is None:
            self.message = NO_FILE_MESSAGE
            return self.state()
        if not self.bootstrapped:
            raise ScreenBusy("The profile is still loading")
        if self.uploading:
            raise ScreenBusy("An avatar upload is already in progress")

        self.uploading = True
        self.message = ""
        user_identity = self.session.user_identity
        file_path = build_avatar_path(user_identity, file.filename)
        try:
            await run_in_threadpool(
                self.storage.upload, file_path, file.content, file.content_type, True
            )
            public_url = self.storage.resolve_public_url(file_path)
            await run_in_threadpool(
                self.store.update_fields, user_identity, {"avatar_url": public_url}
            )
            self.avatar_url = public_url
            self.message = AVATAR_UPDATED_MESSAGE
        except (UploadError, UrlResolutionError, StoreError) as e:
            logger.error(f"Error uploading avatar to {file_path}: {e.message}")
            self.message = f"Error uploading avatar: {e.message}"
        finally:
            self.uploading = False
        return self.state()

    async def sign_out(self) -> ProfileScreenState:
        self._ensure_idle()
        try:
            await run_in_threadpool(self.provider.sign_out)
        except AuthError as e:
            logger.warning(f"Sign-out failed: {e.message}")
            self.message = f"Error signing out: {e.message}"
        return self.state()
