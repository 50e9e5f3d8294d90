from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

Provider = Literal["local", "google", "facebook", "discord"]

OAUTH_PROVIDERS: tuple[str, ...] = ("google", "facebook", "discord")


class _IdentityBase(BaseModel):
    """
    The authenticated principal stored in the session.

    `profile` is kept exactly as the source produced it:
      - local: public fields of the UserRecord (id, name, email)
      - OAuth: the provider's userinfo payload

    It is translated into a UserRecord by the identity service and
    into the /api/me shape by the profile adapters.
    """

    profile: dict[str, Any] = Field(default_factory=dict)
    access_token: str | None = None


class LocalIdentity(_IdentityBase):
    provider: Literal["local"] = "local"


class GoogleIdentity(_IdentityBase):
    provider: Literal["google"] = "google"


class FacebookIdentity(_IdentityBase):
    provider: Literal["facebook"] = "facebook"


class DiscordIdentity(_IdentityBase):
    provider: Literal["discord"] = "discord"


SessionIdentity = Annotated[
    Union[LocalIdentity, GoogleIdentity, FacebookIdentity, DiscordIdentity],
    Field(discriminator="provider"),
]

session_identity_adapter: TypeAdapter[SessionIdentity] = TypeAdapter(SessionIdentity)


def identity_for(
    provider: str,
    profile: dict[str, Any],
    access_token: str | None = None,
) -> SessionIdentity:
    """Build the identity variant matching `provider`."""
    return session_identity_adapter.validate_python(
        {"provider": provider, "profile": profile, "access_token": access_token}
    )
