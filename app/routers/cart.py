from typing import Any

from fastapi import APIRouter, Body, Depends

from app.core.auth import require_auth
from app.database import UserStore, get_store
from app.repositories.user_repo import UserRepository
from app.schemas.cart import CartResponse, CheckoutResponse
from app.schemas.identity import SessionIdentity
from app.services.cart_service import CHECKOUT_MESSAGE, CartService
from app.services.user_service import UserService

router = APIRouter(tags=["Cart"])

repo = UserRepository()
service = CartService(UserService(repo), repo)


@router.get("/cart", response_model=CartResponse)
def get_my_cart(
    store: UserStore = Depends(get_store),
    identity: SessionIdentity = Depends(require_auth),
):
    """
    Get the current user's cart.

    The user record is created on first access for OAuth identities.
    """
    return CartResponse(cart=service.get_cart(store, identity))


@router.post("/cart", response_model=CartResponse)
def replace_my_cart(
    payload: Any = Body(default=None),
    store: UserStore = Depends(get_store),
    identity: SessionIdentity = Depends(require_auth),
):
    """
    Replace the whole cart.

    Any JSON body is accepted. A non-list `cart`, a body that is not
    an object, or no body at all stores an empty cart.
    """
    cart = payload.get("cart") if isinstance(payload, dict) else None
    return CartResponse(cart=service.replace_cart(store, identity, cart))


@router.post("/checkout", response_model=CheckoutResponse)
def checkout(
    store: UserStore = Depends(get_store),
    identity: SessionIdentity = Depends(require_auth),
):
    """
    Simulated checkout: returns an order id and empties the cart.
    """
    order_id = service.checkout(store, identity)
    return CheckoutResponse(order_id=order_id, message=CHECKOUT_MESSAGE)
