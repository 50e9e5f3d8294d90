import logging
from typing import Any

from app.core.errors import BadRequest, MSG_CART_EMPTY
from app.database import UserStore
from app.repositories.user_repo import UserRepository
from app.schemas.identity import SessionIdentity
from app.services.user_service import UserService, timestamp_id

logger = logging.getLogger(__name__)

ORDER_ID_PREFIX = "ORD-"
CHECKOUT_MESSAGE = "Thanh toán thành công (mô phỏng)"


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - resolve the session identity to a user record (auto-create)
      - replace the cart wholesale (no per-item validation)
      - simulated checkout: issue an order id and clear the cart

    The cart is opaque; nothing here looks inside an item.
    """

    def __init__(self, user_service: UserService, repo: UserRepository):
        self.user_service = user_service
        self.repo = repo

    def get_cart(self, store: UserStore, identity: SessionIdentity) -> list[Any]:
        """Return the current cart ([] when absent)."""
        with store.locked():
            resolved = self.user_service.resolve_record(store, identity)
        return resolved.user.cart or []

    def replace_cart(
        self,
        store: UserStore,
        identity: SessionIdentity,
        cart: Any,
    ) -> list[Any]:
        """
        Overwrite the cart.

        Anything that is not a list becomes an empty cart.
        """
        new_cart = cart if isinstance(cart, list) else []

        with store.locked():
            resolved = self.user_service.resolve_record(store, identity)
            resolved.users[resolved.index].cart = new_cart
            self.repo.save_all(store, resolved.users)

        return resolved.users[resolved.index].cart

    def checkout(self, store: UserStore, identity: SessionIdentity) -> str:
        """
        Simulate a checkout.

        Steps:
          1. Resolve the record; error if the cart is empty.
          2. Build "ORD-<ms timestamp>".
          3. Clear the cart and save.

        No order is stored anywhere.

        Raises:
            BadRequest: if the cart is empty (nothing is written).
        """
        with store.locked():
            resolved = self.user_service.resolve_record(store, identity)
            if not resolved.user.cart:
                raise BadRequest(MSG_CART_EMPTY)

            order_id = ORDER_ID_PREFIX + timestamp_id()
            resolved.users[resolved.index].cart = []
            self.repo.save_all(store, resolved.users)

        logger.info("Checkout %s for user %s", order_id, resolved.user.id)
        return order_id
