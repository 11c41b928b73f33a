from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class Profile(BaseModel):
    user_identity: str = Field(alias="user_id")
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = {"populate_by_name": True}


class ProfileUpdate(BaseModel):
    username: Optional[str] = None


class ProfileScreenState(BaseModel):
    user_identity: str
    email: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    message: str = ""
    loading: bool = False
    uploading: bool = False
