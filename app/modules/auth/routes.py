from fastapi import APIRouter, Depends, HTTPException, status
from app.core.dependencies import get_auth_screen, get_profile_screen
from app.core.errors import ScreenBusy
from app.modules.auth.schemas import SignInRequest, SignUpRequest, AuthScreenState
from app.modules.auth.screen import AuthScreen
from app.modules.profiles.schemas import ProfileScreenState
from app.modules.profiles.screen import ProfileScreen

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("", response_model=AuthScreenState)
async def get_auth_state(screen: AuthScreen = Depends(get_auth_screen)):
    """Current sign-in form state"""
    return screen.state()


@router.post("/sign-in", response_model=AuthScreenState)
async def sign_in(
    credentials: SignInRequest,
    screen: AuthScreen = Depends(get_auth_screen)
):
    """Sign in with email and password; the session flips via the change stream"""
    try:
        return await screen.sign_in(credentials.email, credentials.password)
    except ScreenBusy as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/sign-up", response_model=AuthScreenState)
async def sign_up(
    credentials: SignUpRequest,
    screen: AuthScreen = Depends(get_auth_screen)
):
    """Register a new user"""
    try:
        return await screen.sign_up(credentials.email, credentials.password)
    except ScreenBusy as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/sign-out", response_model=ProfileScreenState)
async def sign_out(screen: ProfileScreen = Depends(get_profile_screen)):
    """Sign out of the current session"""
    try:
        return await screen.sign_out()
    except ScreenBusy as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
