import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.dependencies import build_session_controller
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.sessions import routes as sessions_routes
from app.modules.sessions.schemas import SessionState

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(sessions_routes.router, prefix="/api/v1")
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")


def _log_session_state(state: SessionState, session):
    if session is not None:
        logger.info("Rendering profile screen for %s", session.user_identity)
    else:
        logger.info("Rendering %s screen", "auth" if state is SessionState.ANONYMOUS else "loading")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    # A controller set beforehand (tests, embedding) is used as-is
    controller = getattr(app.state, "session_controller", None) or build_session_controller()
    controller.add_listener(_log_session_state)
    await controller.start()
    app.state.session_controller = controller


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")
    controller = getattr(app.state, "session_controller", None)
    if controller is not None:
        controller.stop()


@app.get("/")
async def root():
    return {"message": "Welcome to profile-console", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready(request: Request):
    """Readiness probe: ready once the initial session query has resolved."""
    controller = getattr(request.app.state, "session_controller", None)
    if controller is None or controller.screen == "loading":
        return JSONResponse(status_code=503, content={"status": "starting"})
    return {"status": "ready"}
