import logging

from fastapi import Depends, Request
from pydantic import ValidationError

from app.core.errors import Unauthorized
from app.core.sessions import SESSION_ID_SCOPE_KEY, SessionStore
from app.schemas.identity import SessionIdentity, session_identity_adapter

logger = logging.getLogger(__name__)

# Key under which the identity lives in request.session
IDENTITY_SESSION_KEY = "identity"


def get_current_identity(request: Request) -> SessionIdentity | None:
    """
    Resolve the logged-in principal from the session.

    Flow:
      1. No identity in session => anonymous => return None.
      2. Re-hydrate the stored dict into its provider variant.
      3. A stored value that no longer validates is dropped and
         treated as anonymous.

    Returns:
        SessionIdentity if logged in, else None.
    """
    raw = request.session.get(IDENTITY_SESSION_KEY)
    if raw is None:
        return None

    try:
        return session_identity_adapter.validate_python(raw)
    except ValidationError:
        logger.warning("Dropping malformed session identity")
        request.session.pop(IDENTITY_SESSION_KEY, None)
        return None


def require_auth(
    identity: SessionIdentity | None = Depends(get_current_identity),
) -> SessionIdentity:
    """
    Enforce authentication.

    If attached to a route, anonymous requests
    will be rejected with 401.

    Raises:
        Unauthorized: if there is no session identity.
    """
    if identity is None:
        raise Unauthorized()
    return identity


def login_session(request: Request, identity: SessionIdentity) -> None:
    """
    Attach an identity to a fresh session.

    Whatever session the request arrived with is destroyed first and
    the middleware issues a new id, so a session id known before
    login never becomes an authenticated one.
    """
    old_id = request.scope.get(SESSION_ID_SCOPE_KEY)
    request.session.clear()
    request.scope[SESSION_ID_SCOPE_KEY] = None
    if old_id is not None:
        store: SessionStore = request.app.state.session_store
        store.destroy(old_id)

    request.session[IDENTITY_SESSION_KEY] = identity.model_dump()


def destroy_session(request: Request) -> None:
    """
    Log out and destroy the server-side session.

    The session is detached from the request before the store is
    touched, so the cookie is never re-issued even if destroy fails.

    Raises:
        SessionError: if the session store could not destroy it.
    """
    request.session.clear()
    session_id = request.scope.get(SESSION_ID_SCOPE_KEY)
    request.scope[SESSION_ID_SCOPE_KEY] = None
    if session_id is None:
        return

    store: SessionStore = request.app.state.session_store
    store.destroy(session_id)
