from typing import Any, Callable

from pydantic import BaseModel

from app.schemas.identity import SessionIdentity

DISCORD_CDN = "https://cdn.discordapp.com"


class CanonicalProfile(BaseModel):
    """
    Provider-independent view of a session profile.

    Empty strings mean "the provider did not give us this".
    """

    id: str = ""
    name: str = ""
    email: str = ""
    avatar: str | None = None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _url(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


# ---- per-provider adapters ----


def _local_profile(profile: dict[str, Any]) -> CanonicalProfile:
    return CanonicalProfile(
        id=_text(profile.get("id")),
        name=_text(profile.get("name")),
        email=_text(profile.get("email")),
    )


def _google_profile(profile: dict[str, Any]) -> CanonicalProfile:
    # OpenID Connect userinfo: sub, name, email, picture
    return CanonicalProfile(
        id=_text(profile.get("sub") or profile.get("id")),
        name=_text(profile.get("name")),
        email=_text(profile.get("email")),
        avatar=_url(profile.get("picture")),
    )


def _facebook_profile(profile: dict[str, Any]) -> CanonicalProfile:
    # Graph API /me?fields=id,name,email,picture
    picture = profile.get("picture")
    data = picture.get("data") if isinstance(picture, dict) else None
    avatar = _url(data.get("url")) if isinstance(data, dict) else None
    return CanonicalProfile(
        id=_text(profile.get("id")),
        name=_text(profile.get("name")),
        email=_text(profile.get("email")),
        avatar=avatar,
    )


def _discord_profile(profile: dict[str, Any]) -> CanonicalProfile:
    # /users/@me: avatar is a hash, not a URL
    user_id = _text(profile.get("id"))
    avatar_hash = profile.get("avatar")
    avatar = (
        f"{DISCORD_CDN}/avatars/{user_id}/{avatar_hash}.png"
        if user_id and avatar_hash
        else None
    )
    return CanonicalProfile(
        id=user_id,
        name=_text(profile.get("global_name") or profile.get("username")),
        email=_text(profile.get("email")),
        avatar=avatar,
    )


PROFILE_ADAPTERS: dict[str, Callable[[dict[str, Any]], CanonicalProfile]] = {
    "local": _local_profile,
    "google": _google_profile,
    "facebook": _facebook_profile,
    "discord": _discord_profile,
}


def canonical_profile(identity: SessionIdentity) -> CanonicalProfile:
    """Map an identity's stored profile to the canonical shape."""
    return PROFILE_ADAPTERS[identity.provider](identity.profile)
