from typing import Any, List, Mapping, Optional

import structlog

from shanthi_store.client.api_client import ApiClient
from shanthi_store.client.cart_store import CartStore, product_id_of
from shanthi_store.client.errors import AlreadyExists, AuthRequired, InvalidItem, StorefrontError
from shanthi_store.client.notifier import Notifier
from shanthi_store.client.results import (
    ALREADY_EXISTS,
    AUTH_REQUIRED,
    FAILED,
    INVALID_ITEM,
    OperationResult,
)
from shanthi_store.client.session import AuthSession

logger = structlog.get_logger()

ALREADY_SAVED = "Item already saved"
SAVED_BUT_STILL_IN_CART = "Item saved for later, but it could not be removed from your cart"


def wishlist_entry_as_product(item: Mapping[str, Any]) -> dict:
    """Flatten a wishlist entry into the product shape the cart expects."""
    product = dict(item.get("product") or {})
    product["productId"] = product_id_of(item)
    return product


class WishlistStore:
    """Saved-for-later list. Mirrors CartStore's contract.

    The wishlist endpoints answer with a single item rather than the list,
    so the mirror is replaced by re-fetching after each successful mutation.
    """

    def __init__(self, api: ApiClient, session: AuthSession, notifier: Notifier, cart: CartStore):
        self.api = api
        self.session = session
        self.notifier = notifier
        self.cart = cart
        self._items: List[dict] = []

    @property
    def items(self) -> List[dict]:
        return list(self._items)

    def find_by_product(self, product_id: Any) -> Optional[dict]:
        for item in self._items:
            if str(item.get("productId")) == str(product_id):
                return item
        return None

    def reset(self) -> None:
        self._items = []

    def _require_auth(self) -> Optional[OperationResult]:
        if self.session.is_authenticated:
            return None
        message = AuthRequired().message
        self.notifier.error(message)
        return OperationResult.failure(AUTH_REQUIRED, message)

    async def fetch(self) -> OperationResult:
        if not self.session.is_authenticated:
            self.reset()
            return OperationResult.failure(AUTH_REQUIRED, AuthRequired().message)
        try:
            data = await self.api.get("wishlist/")
        except StorefrontError as exc:
            logger.warning("wishlist_fetch_failed", error=exc.message)
            return OperationResult.failure(FAILED, exc.message)
        self._items = list((data or {}).get("items") or [])
        return OperationResult.success(data=self.items)

    async def save_for_item_later(self, entity: Mapping[str, Any]) -> OperationResult:
        """Save a product or cart line for later, taking it out of the cart.

        Two sequential calls: wishlist add, then cart removal. A product that
        is already saved still leaves the cart.
        """
        denied = self._require_auth()
        if denied:
            return denied

        try:
            product_id = product_id_of(entity)
        except InvalidItem as exc:
            self.notifier.error(exc.message)
            return OperationResult.failure(INVALID_ITEM, exc.message)

        try:
            await self.api.post("wishlist/", json={"productId": product_id})
            result = OperationResult.success("Item saved for later")
        except AlreadyExists:
            result = OperationResult.already_exists(ALREADY_SAVED)
        except AuthRequired as exc:
            self.notifier.error(exc.message)
            return OperationResult.failure(AUTH_REQUIRED, exc.message)
        except StorefrontError as exc:
            logger.warning("wishlist_save_failed", product_id=product_id, error=exc.message)
            self.notifier.error(exc.message)
            return OperationResult.failure(FAILED, exc.message)

        cart_line = self.cart.find_by_product(product_id)
        if cart_line is not None:
            removed = await self.cart.remove_from_cart(cart_line["id"], silent=True)
            if not removed.ok:
                # Saved on the server, but the line is still in the cart
                await self.fetch()
                logger.warning("save_for_later_cart_removal_failed", product_id=product_id, error=removed.message)
                failed = OperationResult.failure(removed.status, SAVED_BUT_STILL_IN_CART)
                failed.data = self.items
                return failed

        await self.fetch()
        if result.status == ALREADY_EXISTS:
            self.notifier.info(result.message)
        else:
            self.notifier.success(result.message)
        result.data = self.items
        return result

    async def move_to_cart(self, item: Mapping[str, Any]) -> OperationResult:
        """Add the saved product to the cart, then drop it from the wishlist.

        When the cart already holds the product the add is a soft success and
        the wishlist entry is left in place.
        """
        denied = self._require_auth()
        if denied:
            return denied

        try:
            product = wishlist_entry_as_product(item)
        except InvalidItem as exc:
            self.notifier.error(exc.message)
            return OperationResult.failure(INVALID_ITEM, exc.message)

        added = await self.cart.add_to_cart(product)
        if not added.ok or added.status == ALREADY_EXISTS:
            return added

        removed = await self.remove_from_saved(item["id"], silent=True)
        if not removed.ok:
            return removed
        return OperationResult.success("Item moved to cart", data=self.items)

    async def remove_from_saved(self, item_id: Any, silent: bool = False) -> OperationResult:
        denied = self._require_auth()
        if denied:
            return denied

        try:
            await self.api.delete(f"wishlist/{item_id}")
        except AuthRequired as exc:
            self.notifier.error(exc.message)
            return OperationResult.failure(AUTH_REQUIRED, exc.message)
        except StorefrontError as exc:
            logger.warning("wishlist_remove_failed", item_id=item_id, error=exc.message)
            if not silent:
                self.notifier.error(exc.message)
            return OperationResult.failure(FAILED, exc.message)

        await self.fetch()
        if not silent:
            self.notifier.success("Item removed from saved items")
        return OperationResult.success("Item removed from saved items", data=self.items)
