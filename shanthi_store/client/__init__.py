"""Async storefront client: cart/wishlist mirrors, guest migration and checkout."""

from shanthi_store.client.cart_store import CartStore
from shanthi_store.client.checkout import Checkout, CheckoutResult, GatewayOutcome
from shanthi_store.client.config import ClientSettings
from shanthi_store.client.migration import LocalMigration, MigrationReport
from shanthi_store.client.notifier import Notifier
from shanthi_store.client.poller import OrderStatusPoller
from shanthi_store.client.results import OperationResult
from shanthi_store.client.session import AuthSession
from shanthi_store.client.storefront import Storefront
from shanthi_store.client.wishlist_store import WishlistStore

__all__ = [
    "AuthSession",
    "CartStore",
    "Checkout",
    "CheckoutResult",
    "ClientSettings",
    "GatewayOutcome",
    "LocalMigration",
    "MigrationReport",
    "Notifier",
    "OperationResult",
    "OrderStatusPoller",
    "Storefront",
    "WishlistStore",
]
