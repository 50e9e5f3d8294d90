import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.core.auth import destroy_session, get_current_identity, login_session
from app.core.errors import MSG_SESSION_DESTROY_FAILED, error_envelope
from app.core.profiles import canonical_profile
from app.core.sessions import SessionError
from app.database import UserStore, get_store
from app.models.user import UserRecord
from app.repositories.user_repo import UserRepository
from app.schemas.identity import SessionIdentity
from app.schemas.user import AuthResponse, LoginRequest, MeUser, RegisterRequest, UserRead
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

repo = UserRepository()
service = UserService(repo)


def _public(user: UserRecord) -> UserRead:
    return UserRead(**user.model_dump(include={"id", "name", "email", "cart"}))


# -------- Local accounts --------


@router.post("/register", response_model=AuthResponse)
def register(
    request: Request,
    payload: RegisterRequest,
    store: UserStore = Depends(get_store),
):
    """
    Create a local account and log it in straight away.

    Errors:
      - 400 if name, email or password is missing
      - 409 if the email is already registered
    """
    user = service.register(store, payload)
    login_session(request, service.local_identity(user))
    return AuthResponse(user=_public(user))


@router.post("/login", response_model=AuthResponse)
def login(
    request: Request,
    payload: LoginRequest,
    store: UserStore = Depends(get_store),
):
    """
    Log in with email + password.

    Errors:
      - 400 if email or password is missing
      - 401 if they do not match a stored account
    """
    user = service.authenticate(store, payload)
    login_session(request, service.local_identity(user))
    return AuthResponse(user=_public(user))


@router.post("/logout")
def logout(request: Request):
    """
    End the session, whatever provider it came from.

    The session cookie is cleared even when destroying the
    server-side session fails (that case answers 500).
    """
    settings = request.app.state.settings
    logger.info("POST /api/logout, logged in=%s", get_current_identity(request) is not None)

    try:
        destroy_session(request)
    except SessionError:
        logger.exception("Session destroy failed")
        response = error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_SESSION_DESTROY_FAILED)
    else:
        response = JSONResponse({"ok": True})

    response.delete_cookie(settings.SESSION_NAME, path="/")
    return response


# -------- Current user --------


@router.get("/me")
def read_me(identity: SessionIdentity | None = Depends(get_current_identity)):
    """
    Describe the current session.

    Anonymous: exactly {"loggedIn": false}.
    Logged in: provider, id, name, email, avatar and the raw profile.
    """
    if identity is None:
        return {"loggedIn": False}

    profile = canonical_profile(identity)
    user = MeUser(
        provider=identity.provider,
        id=profile.id,
        name=profile.name,
        email=profile.email,
        avatar=profile.avatar,
        raw=identity.profile,
    )
    return {"loggedIn": True, "user": user}
