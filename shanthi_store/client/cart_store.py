from typing import Any, Awaitable, Callable, List, Mapping, Optional

import structlog

from shanthi_store.client.api_client import ApiClient
from shanthi_store.client.errors import AlreadyExists, AuthRequired, InvalidItem, StorefrontError
from shanthi_store.client.notifier import Notifier
from shanthi_store.client.results import (
    AUTH_REQUIRED,
    FAILED,
    INVALID_ITEM,
    OperationResult,
)
from shanthi_store.client.session import AuthSession

logger = structlog.get_logger()

ALREADY_IN_CART = "Item already in cart"


def product_id_of(entity: Mapping[str, Any]) -> Any:
    """Product id of a raw product, a cart line or a wishlist entry.

    Lines carry their own `id`, so `productId` wins over `id` when both exist.
    """
    if not isinstance(entity, Mapping):
        raise InvalidItem()
    for key in ("productId", "product_id"):
        value = entity.get(key)
        if isinstance(value, Mapping):
            value = value.get("id") or value.get("_id")
        if value not in (None, ""):
            return value
    for key in ("id", "_id"):
        value = entity.get(key)
        if value not in (None, ""):
            return value
    raise InvalidItem()


def cart_line_payload(product: Mapping[str, Any]) -> dict:
    """Snapshot a product (or a line shaped like one) into the add-to-cart body."""
    product_id = product_id_of(product)
    images = product.get("images") or []
    return {
        "productId": product_id,
        "name": product.get("name") or product.get("title"),
        "price": product.get("price"),
        "image": product.get("image") or (images[0] if images else None),
        "quantity": product.get("quantity") or 1,
        "category": product.get("category"),
        "description": product.get("description"),
        "weight": product.get("weight") or product.get("grossWeight"),
        "purity": product.get("purity") or product.get("karatage"),
    }


class CartStore:
    """Local mirror of the server cart.

    Every successful call replaces the mirror with the cart embedded in the
    server response; nothing is merged or applied optimistically. Calls are
    not serialised against each other, so the last response to arrive wins.
    """

    def __init__(self, api: ApiClient, session: AuthSession, notifier: Notifier):
        self.api = api
        self.session = session
        self.notifier = notifier
        self._items: List[dict] = []
        self.total_amount: float = 0
        self.total_items: int = 0

    @property
    def items(self) -> List[dict]:
        return list(self._items)

    def find_by_product(self, product_id: Any) -> Optional[dict]:
        for item in self._items:
            if str(item.get("productId")) == str(product_id):
                return item
        return None

    def _replace(self, cart: Optional[Mapping[str, Any]]) -> None:
        cart = cart or {}
        self._items = list(cart.get("items") or [])
        self.total_amount = cart.get("totalAmount", 0)
        self.total_items = cart.get("totalItems", 0)

    def reset(self) -> None:
        self._replace(None)

    def _require_auth(self) -> Optional[OperationResult]:
        if self.session.is_authenticated:
            return None
        message = AuthRequired().message
        self.notifier.error(message)
        return OperationResult.failure(AUTH_REQUIRED, message)

    async def _mutate(
        self,
        call: Callable[[], Awaitable[Any]],
        success_message: str,
        silent: bool = False,
    ) -> OperationResult:
        try:
            data = await call()
        except AlreadyExists as exc:
            snapshot = (exc.body.get("data") or {}).get("cart")
            if snapshot is not None:
                self._replace(snapshot)
            if not silent:
                self.notifier.info(ALREADY_IN_CART)
            return OperationResult.already_exists(ALREADY_IN_CART)
        except AuthRequired as exc:
            self.notifier.error(exc.message)
            return OperationResult.failure(AUTH_REQUIRED, exc.message)
        except StorefrontError as exc:
            logger.warning("cart_operation_failed", error=exc.message)
            self.notifier.error(exc.message)
            return OperationResult.failure(FAILED, exc.message)

        self._replace((data or {}).get("cart"))
        if not silent:
            self.notifier.success(success_message)
        return OperationResult.success(success_message, data=self.items)

    async def fetch(self) -> OperationResult:
        """Load the authoritative cart. Silent on success."""
        if not self.session.is_authenticated:
            self.reset()
            return OperationResult.failure(AUTH_REQUIRED, AuthRequired().message)
        try:
            data = await self.api.get("cart/")
        except StorefrontError as exc:
            logger.warning("cart_fetch_failed", error=exc.message)
            return OperationResult.failure(FAILED, exc.message)
        self._replace((data or {}).get("cart"))
        return OperationResult.success(data=self.items)

    async def add_to_cart(self, product: Mapping[str, Any]) -> OperationResult:
        denied = self._require_auth()
        if denied:
            return denied

        try:
            payload = cart_line_payload(product)
        except InvalidItem as exc:
            self.notifier.error(exc.message)
            return OperationResult.failure(INVALID_ITEM, exc.message)

        if self.find_by_product(payload["productId"]) is not None:
            self.notifier.info(ALREADY_IN_CART)
            return OperationResult.already_exists(ALREADY_IN_CART)

        return await self._mutate(lambda: self.api.post("cart/", json=payload), "Item added to cart")

    async def update_quantity(self, item_id: Any, quantity: int) -> OperationResult:
        denied = self._require_auth()
        if denied:
            return denied
        return await self._mutate(
            lambda: self.api.put(f"cart/{item_id}", json={"quantity": quantity}),
            "Cart updated",
        )

    async def remove_from_cart(self, item_id: Any, silent: bool = False) -> OperationResult:
        denied = self._require_auth()
        if denied:
            return denied
        return await self._mutate(lambda: self.api.delete(f"cart/{item_id}"), "Item removed from cart", silent)

    async def clear_cart(self, silent: bool = False) -> OperationResult:
        denied = self._require_auth()
        if denied:
            return denied
        return await self._mutate(lambda: self.api.delete("cart/"), "Cart cleared", silent)
