import logging

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError
from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

from app.core.auth import login_session
from app.core.config import Settings
from app.core.oauth import fetch_profile
from app.schemas.identity import identity_for

logger = logging.getLogger(__name__)

SUCCESS_REDIRECT = "/?auth=success"
FAILURE_REDIRECT = "/?auth=fail"


def build_oauth_router(oauth: OAuth, providers: list[str], settings: Settings) -> APIRouter:
    """
    Create `/auth/{provider}` and `/auth/{provider}/callback` for every
    enabled provider. Unconfigured providers get no routes at all.
    """
    router = APIRouter(prefix="/auth", tags=["OAuth"])

    for provider in providers:
        _add_provider_routes(router, oauth, provider, settings.callback_url(provider))

    return router


def _add_provider_routes(
    router: APIRouter,
    oauth: OAuth,
    provider: str,
    callback_url: str,
) -> None:
    async def login(request: Request):
        """Redirect the browser to the provider's consent screen."""
        client = oauth.create_client(provider)
        return await client.authorize_redirect(request, callback_url)

    async def callback(request: Request):
        """
        Finish the handshake.

        On success the provider profile becomes the session identity
        and the browser goes back to the frontend with ?auth=success.
        Any provider-side failure redirects with ?auth=fail.
        """
        client = oauth.create_client(provider)
        try:
            token = await client.authorize_access_token(request)
            profile = await fetch_profile(client, provider, token)
        except (OAuthError, httpx.HTTPError) as e:
            logger.warning("%s OAuth callback failed: %s", provider, e)
            return RedirectResponse(FAILURE_REDIRECT, status_code=status.HTTP_302_FOUND)

        identity = identity_for(provider, profile, token.get("access_token"))
        login_session(request, identity)
        logger.info("%s login: %s", provider, identity.profile.get("email") or "no email")
        return RedirectResponse(SUCCESS_REDIRECT, status_code=status.HTTP_302_FOUND)

    router.add_api_route(f"/{provider}", login, methods=["GET"], name=f"{provider}_login")
    router.add_api_route(
        f"/{provider}/callback",
        callback,
        methods=["GET"],
        name=f"{provider}_callback",
    )
