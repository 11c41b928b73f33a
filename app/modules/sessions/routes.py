from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional
from app.core.dependencies import get_session_controller
from app.modules.auth.schemas import AuthScreenState
from app.modules.profiles.schemas import ProfileScreenState
from app.modules.sessions.controller import SessionController
from app.modules.sessions.schemas import SessionState

router = APIRouter(tags=["session"])


class ScreenResponse(BaseModel):
    state: SessionState
    screen: str  # loading | auth | profile
    auth: Optional[AuthScreenState] = None
    profile: Optional[ProfileScreenState] = None


@router.get("/screen", response_model=ScreenResponse)
async def get_screen(controller: SessionController = Depends(get_session_controller)):
    """Which screen to render, with its state"""
    return ScreenResponse(
        state=controller.state,
        screen=controller.screen,
        auth=controller.auth_screen.state() if controller.auth_screen else None,
        profile=controller.profile_screen.state() if controller.profile_screen else None,
    )
