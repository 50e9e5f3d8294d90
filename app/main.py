from contextlib import asynccontextmanager
from pathlib import Path
import logging
import time

from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi import FastAPI, Request

from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.oauth import create_oauth
from app.core.sessions import ServerSessionMiddleware, SessionStore
from app.database import UserStore

# Routers
from app.routers.auth import router as auth_router
from app.routers.cart import router as cart_router
from app.routers.oauth import build_oauth_router

API_PREFIX = "/api"

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Make sure the users file exists.

    Shutdown:
      - Nothing to clean up; sessions are in-process only.
    """
    store: UserStore = app.state.user_store
    store.ensure_file()
    logger.info("✅ Startup: user store at %s", store.path)
    yield


async def log_requests(request: Request, call_next):
    """One access-log line per request: method, path, status, duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s %s %.1f ms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Tests pass their own Settings (temporary users file, fake
    OAuth credentials); the module-level `app` uses the environment.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.user_store = UserStore(settings.USERS_FILE)
    app.state.session_store = SessionStore(max_age=settings.SESSION_MAX_AGE)

    oauth, providers = create_oauth(settings)
    app.state.oauth = oauth
    app.state.oauth_providers = providers

    register_exception_handlers(app)

    # Middleware: the last one added runs first.
    app.add_middleware(
        ServerSessionMiddleware,
        store=app.state.session_store,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_NAME,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.is_production,
    )
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(cart_router, prefix=API_PREFIX)
    app.include_router(build_oauth_router(oauth, providers, settings))

    @app.get(f"{API_PREFIX}/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok", "service": "shop-session-backend"}

    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


app = create_app()
