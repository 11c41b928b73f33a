"""
Profile Store over the Supabase `profiles` table.

Expected table structure:

profiles:
- id: bigint generated always as identity (primary key)
- user_id: uuid (unique, not null, references auth.users.id)
- username: text (nullable)
- avatar_url: text (nullable) - public URL of the current avatar object
- updated_at: timestamptz (nullable)

    create table public.profiles (
        id bigint generated always as identity primary key,
        user_id uuid not null unique references auth.users (id),
        username text,
        avatar_url text,
        updated_at timestamptz
    );

The UNIQUE constraint on user_id is what keeps a concurrent first login in two
tabs down to one row: the losing insert fails with 23505 and the bootstrap
reads the winner's row instead.

Row level security is expected to restrict select/insert/update to rows where
user_id = auth.uid().

Storage bucket "avatars" must be public; objects live at
<user_id>/<random token>.<extension>.
"""

from supabase import Client
from app.config import settings
from app.core.errors import (
    ProfileNotFound, ProfileWriteError, StoreError, StoreErrorKind,
    classify_store_error, error_message
)
from app.modules.profiles.schemas import Profile
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class ProfileStore:
    """Profile rows in the Supabase `profiles` table, keyed by user_id."""

    def __init__(self, supabase: Client, table: Optional[str] = None):
        self.supabase = supabase
        self.table = table or settings.profiles_table

    def get(self, user_identity: str) -> Profile:
        """Fetch the profile for a user. Raises ProfileNotFound when no row exists."""
        try:
            result = self.supabase.table(self.table)\
                .select("user_id, username, avatar_url, updated_at")\
                .eq("user_id", user_identity)\
                .single()\
                .execute()
        except Exception as e:
            kind = classify_store_error(e)
            if kind is StoreErrorKind.NOT_FOUND:
                raise ProfileNotFound(error_message(e)) from e
            raise StoreError(error_message(e), kind) from e

        if not result.data:
            raise ProfileNotFound()
        return Profile(**result.data)

    def insert(self, record: Dict[str, Any]) -> None:
        try:
            self.supabase.table(self.table).insert([record]).execute()
        except Exception as e:
            raise ProfileWriteError(error_message(e), classify_store_error(e)) from e

    def upsert(self, record: Dict[str, Any], on_conflict: str = "user_id") -> None:
        try:
            self.supabase.table(self.table)\
                .upsert(record, on_conflict=on_conflict)\
                .execute()
        except Exception as e:
            raise ProfileWriteError(error_message(e), classify_store_error(e)) from e

    def update_fields(self, user_identity: str, fields: Dict[str, Any]) -> None:
        """Targeted update of some columns of one profile row."""
        try:
            self.supabase.table(self.table)\
                .update(fields)\
                .eq("user_id", user_identity)\
                .execute()
        except Exception as e:
            raise ProfileWriteError(error_message(e), classify_store_error(e)) from e
