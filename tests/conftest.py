"""Shared fixtures: in-memory stand-ins for Supabase Auth, the profiles table
and the avatars bucket, plus a TestClient wired to them."""
import threading
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.errors import AuthError, ProfileNotFound, ProfileWriteError, StoreError, UploadError
from app.modules.profiles.schemas import Profile
from app.modules.profiles.screen import ProfileScreen
from app.modules.sessions.controller import SessionController
from app.modules.sessions.schemas import AuthUser, Session


def make_session(user_identity: str, email: str, token: str = "token-1") -> Session:
    return Session(user_identity=user_identity, user_email=email, access_token=token)


class FakeSessionProvider:
    def __init__(self, session: Optional[Session] = None):
        self.current = session
        self.callbacks: List = []
        self.accounts: Dict[str, tuple] = {}
        self.sign_up_error: Optional[str] = None
        self.sign_up_user: Optional[AuthUser] = None
        self.sign_out_error: Optional[str] = None
        self.get_session_calls = 0

    def get_current_session(self) -> Optional[Session]:
        self.get_session_calls += 1
        return self.current

    def on_session_change(self, callback):
        self.callbacks.append(callback)

        def unsubscribe():
            self.callbacks.remove(callback)
        return unsubscribe

    def emit(self, event: str, session: Optional[Session]) -> None:
        self.current = session
        for callback in list(self.callbacks):
            callback(event, session)

    def sign_in(self, email: str, password: str) -> None:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials")
        self.emit("SIGNED_IN", make_session(account[1], email))

    def sign_up(self, email: str, password: str) -> Optional[AuthUser]:
        if self.sign_up_error:
            raise AuthError(self.sign_up_error)
        return self.sign_up_user

    def sign_out(self) -> None:
        if self.sign_out_error:
            raise AuthError(self.sign_out_error)
        self.emit("SIGNED_OUT", None)


class FakeProfileStore:
    def __init__(self):
        self.rows: Dict[str, dict] = {}
        self.get_error: Optional[StoreError] = None
        self.insert_error: Optional[StoreError] = None
        self.upsert_error: Optional[StoreError] = None
        self.update_error: Optional[StoreError] = None
        self.inserts: List[dict] = []
        self.upserts: List[dict] = []
        self.updates: List[tuple] = []

    def get(self, user_identity: str) -> Profile:
        if self.get_error is not None:
            raise self.get_error
        row = self.rows.get(user_identity)
        if row is None:
            raise ProfileNotFound("JSON object requested, multiple (or no) rows returned")
        return Profile(**row)

    def insert(self, record: dict) -> None:
        self.inserts.append(dict(record))
        if self.insert_error is not None:
            raise self.insert_error
        if record["user_id"] in self.rows:
            raise ProfileWriteError("duplicate key value violates unique constraint")
        self.rows[record["user_id"]] = dict(record)

    def upsert(self, record: dict, on_conflict: str = "user_id") -> None:
        self.upserts.append(dict(record))
        if self.upsert_error is not None:
            raise self.upsert_error
        self.rows[record[on_conflict]] = dict(record)

    def update_fields(self, user_identity: str, fields: dict) -> None:
        self.updates.append((user_identity, dict(fields)))
        if self.update_error is not None:
            raise self.update_error
        if user_identity in self.rows:
            self.rows[user_identity].update(fields)


class BlockingProfileStore(FakeProfileStore):
    """Holds `get` for one user until released."""

    def __init__(self, blocked_user: str):
        super().__init__()
        self.blocked_user = blocked_user
        self.entered = threading.Event()
        self.release = threading.Event()

    def get(self, user_identity: str) -> Profile:
        if user_identity == self.blocked_user:
            self.entered.set()
            self.release.wait(5)
        return super().get(user_identity)


class FakeAvatarStorage:
    base_url = "https://project.supabase.co/storage/v1/object/public/avatars"

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.uploads: List[tuple] = []
        self.upload_error: Optional[str] = None

    def upload(self, path: str, content: bytes, content_type: Optional[str] = None, overwrite: bool = True) -> None:
        self.uploads.append((path, content_type, overwrite))
        if self.upload_error:
            raise UploadError(self.upload_error)
        self.objects[path] = content

    def resolve_public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"


@pytest.fixture
def provider():
    return FakeSessionProvider()


@pytest.fixture
def store():
    return FakeProfileStore()


@pytest.fixture
def storage():
    return FakeAvatarStorage()


@pytest.fixture
def controller(provider, store, storage):
    return SessionController(provider, lambda s: ProfileScreen(s, store, storage, provider))


@pytest.fixture
def client(controller):
    from app.main import app
    app.state.session_controller = controller
    with TestClient(app) as test_client:
        yield test_client
    del app.state.session_controller
