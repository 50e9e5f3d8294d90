import logging
from typing import Any

from authlib.integrations.starlette_client import OAuth

from app.core.config import Settings
from app.schemas.identity import OAUTH_PROVIDERS

logger = logging.getLogger(__name__)

FACEBOOK_GRAPH = "https://graph.facebook.com/v19.0"

# Endpoint + scope configuration per provider (Authlib `register` kwargs)
PROVIDER_CONFIG: dict[str, dict[str, Any]] = {
    "google": {
        "server_metadata_url": "https://accounts.google.com/.well-known/openid-configuration",
        "client_kwargs": {"scope": "openid email profile"},
    },
    "facebook": {
        "authorize_url": "https://www.facebook.com/v19.0/dialog/oauth",
        "access_token_url": f"{FACEBOOK_GRAPH}/oauth/access_token",
        "api_base_url": f"{FACEBOOK_GRAPH}/",
        "client_kwargs": {
            "scope": "email public_profile",
            "token_endpoint_auth_method": "client_secret_post",
        },
    },
    "discord": {
        "authorize_url": "https://discord.com/oauth2/authorize",
        "access_token_url": "https://discord.com/api/oauth2/token",
        "api_base_url": "https://discord.com/api/",
        "client_kwargs": {"scope": "identify email"},
    },
}

FACEBOOK_PROFILE_FIELDS = "id,name,email,picture"


def create_oauth(settings: Settings) -> tuple[OAuth, list[str]]:
    """
    Build the Authlib registry.

    Only providers with both client id and secret are registered;
    the others are logged and skipped, and get no routes.

    Returns:
        (oauth registry, names of the enabled providers)
    """
    oauth = OAuth()
    enabled: list[str] = []

    for provider in OAUTH_PROVIDERS:
        credentials = settings.provider_credentials(provider)
        if credentials is None:
            prefix = provider.upper()
            logger.warning(
                "%s OAuth not configured (set %s_CLIENT_ID & %s_CLIENT_SECRET in .env)",
                provider.capitalize(),
                prefix,
                prefix,
            )
            continue

        client_id, client_secret = credentials
        oauth.register(
            name=provider,
            client_id=client_id,
            client_secret=client_secret,
            **PROVIDER_CONFIG[provider],
        )
        enabled.append(provider)

    return oauth, enabled


async def fetch_profile(client: Any, provider: str, token: dict[str, Any]) -> dict[str, Any]:
    """
    Fetch the provider's user profile after the token exchange.

      - google: OIDC userinfo (already in the token when an id_token came back)
      - facebook: Graph API /me
      - discord: /users/@me

    Raises:
        httpx.HTTPStatusError: if the provider answers with an error status.
    """
    if provider == "google":
        userinfo = token.get("userinfo")
        if userinfo is None:
            userinfo = await client.userinfo(token=token)
        return dict(userinfo)

    if provider == "facebook":
        resp = await client.get("me", params={"fields": FACEBOOK_PROFILE_FIELDS}, token=token)
    else:
        resp = await client.get("users/@me", token=token)

    resp.raise_for_status()
    return resp.json()
