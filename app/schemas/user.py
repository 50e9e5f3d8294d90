from typing import Any

from sqlmodel import SQLModel, Field


class RegisterRequest(SQLModel):
    """
    Payload for local sign-up.

    All fields are optional at the schema level so that a missing
    field is reported by the service as 400 "Thiếu thông tin"
    instead of a validation error.
    """

    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(SQLModel):
    """Payload for local login."""

    email: str | None = None
    password: str | None = None


class UserRead(SQLModel):
    """Public view of a UserRecord. The password never leaves the server."""

    id: str
    name: str
    email: str
    cart: list[Any] = Field(default_factory=list)


class AuthResponse(SQLModel):
    """Returned by register and login."""

    ok: bool = True
    user: UserRead


class MeUser(SQLModel):
    """
    Flattened session profile for /api/me.

    `raw` is the profile exactly as stored in the session.
    """

    provider: str
    id: str = ""
    name: str = ""
    email: str = ""
    avatar: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)


class OkResponse(SQLModel):
    ok: bool = True
