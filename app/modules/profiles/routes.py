from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from app.core.dependencies import get_profile_screen, get_session_controller
from app.core.errors import ScreenBusy
from app.modules.avatars.storage import AvatarFile
from app.modules.profiles.schemas import ProfileScreenState, ProfileUpdate
from app.modules.profiles.screen import ProfileScreen
from typing import Optional

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileScreenState)
async def get_profile(request: Request, wait: bool = False):
    """Profile screen state. With `wait`, returns once the bootstrap has settled."""
    if wait:
        await get_session_controller(request).wait_for_profile()
    return get_profile_screen(request).state()


@router.put("", response_model=ProfileScreenState)
async def update_profile(
    profile_data: ProfileUpdate,
    screen: ProfileScreen = Depends(get_profile_screen)
):
    """Save the profile (username edit, if given, is applied first)"""
    try:
        if "username" in profile_data.model_fields_set:
            screen.set_username(profile_data.username)
        return await screen.update_profile()
    except ScreenBusy as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/avatar", response_model=ProfileScreenState)
async def upload_avatar(
    file: Optional[UploadFile] = File(None),
    screen: ProfileScreen = Depends(get_profile_screen)
):
    """Upload a new avatar image and point the profile at it"""
    avatar = None
    if file is not None and file.filename:
        avatar = AvatarFile(
            filename=file.filename,
            content=await file.read(),
            content_type=file.content_type,
        )
    try:
        return await screen.upload_avatar(avatar)
    except ScreenBusy as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
