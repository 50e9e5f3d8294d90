from typing import Any

from pydantic import BaseModel, Field
from sqlmodel import SQLModel


class CartResponse(SQLModel):
    """Current cart of the logged-in user."""

    ok: bool = True
    cart: list[Any]


class CheckoutResponse(BaseModel):
    """
    Result of a simulated checkout.

    Serialized with camelCase `orderId` for the frontend.
    """

    ok: bool = True
    order_id: str = Field(serialization_alias="orderId")
    message: str
