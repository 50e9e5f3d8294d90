from typing import Any

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class UserRecord(SQLModel):
    """
    Persistent user record, one entry of the users.json array.

    Identity:
      - email: primary match key (unique when non-empty)
      - id: OAuth provider profile id, or a millisecond timestamp
            string for local signups

    Password:
      - salted hash for local accounts
      - "" for accounts created through an OAuth login

    The cart is opaque: whatever the client sent is stored verbatim.

    Keys this model does not declare are kept and written back as-is.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(default="", description="Provider profile id or timestamp string")

    name: str = Field(default="", description="Display name")

    email: str = Field(default="", description="Primary match key")

    password: str = Field(default="", description="Password hash, empty for OAuth users")

    cart: list[Any] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> str:
        # Older files may hold numeric ids
        return "" if v is None else str(v)

    @field_validator("name", "email", "password", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> str:
        # null in hand-edited files
        return "" if v is None else str(v)

    @field_validator("cart", mode="before")
    @classmethod
    def default_cart(cls, v: Any) -> list[Any]:
        return v if isinstance(v, list) else []
