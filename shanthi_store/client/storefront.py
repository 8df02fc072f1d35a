from typing import Optional

import httpx
import structlog

from shanthi_store.client.api_client import ApiClient
from shanthi_store.client.cart_store import CartStore
from shanthi_store.client.checkout import Checkout
from shanthi_store.client.config import ClientSettings
from shanthi_store.client.errors import AuthRequired, StorefrontError
from shanthi_store.client.local_storage import LocalStorage
from shanthi_store.client.migration import LocalMigration, MigrationReport
from shanthi_store.client.notifier import Notifier
from shanthi_store.client.poller import OrderStatusPoller
from shanthi_store.client.results import AUTH_REQUIRED, FAILED, OperationResult
from shanthi_store.client.session import LOGOUT, AuthSession
from shanthi_store.client.wishlist_store import WishlistStore

logger = structlog.get_logger()


class Storefront:
    """One shopper's client session: auth, cart, wishlist and checkout wired together."""

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        notifier: Optional[Notifier] = None,
        storage: Optional[LocalStorage] = None,
    ):
        self.settings = settings or ClientSettings()
        self.session = AuthSession()
        self.notifier = notifier or Notifier(debounce_ms=self.settings.TOAST_DEBOUNCE_MS)
        self.storage = storage or LocalStorage(self.settings.LOCAL_STORAGE_PATH)
        self.api = ApiClient(
            self.session,
            base_url=self.settings.API_BASE_URL,
            timeout=self.settings.REQUEST_TIMEOUT,
            transport=transport,
        )
        self.cart = CartStore(self.api, self.session, self.notifier)
        self.wishlist = WishlistStore(self.api, self.session, self.notifier, self.cart)
        self.migration = LocalMigration(
            self.api, self.session, self.storage, self.cart, self.wishlist, self.notifier
        )
        self.checkout = Checkout(self.api, self.session, self.cart, self.notifier)
        self.session.add_listener(self._on_auth_change)

    def _on_auth_change(self, event: str, session: AuthSession) -> None:
        if event == LOGOUT:
            self.cart.reset()
            self.wishlist.reset()

    async def authenticate(self, token: str, user: Optional[dict] = None) -> MigrationReport:
        """Adopt a token, load the server cart and wishlist, then migrate guest data."""
        self.session.login(token, user)
        await self.cart.fetch()
        await self.wishlist.fetch()
        return await self.migration.run()

    async def sign_in(self, email: str, password: str) -> OperationResult:
        try:
            data = await self.api.post("auth/login", json={"email": email, "password": password})
        except StorefrontError as exc:
            self.notifier.error(exc.message)
            status = AUTH_REQUIRED if isinstance(exc, AuthRequired) else FAILED
            return OperationResult.failure(status, exc.message)

        report = await self.authenticate(data["access_token"], data.get("user"))
        return OperationResult.success("Signed in", data=report)

    def sign_out(self) -> None:
        self.session.logout()

    def poller_for(self, order: dict) -> OrderStatusPoller:
        return OrderStatusPoller(
            self.api,
            order,
            self.notifier,
            interval=self.settings.STATUS_POLL_INTERVAL_SECONDS,
            max_attempts=self.settings.STATUS_POLL_MAX_ATTEMPTS,
        )

    async def aclose(self) -> None:
        await self.api.aclose()

    async def __aenter__(self) -> "Storefront":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
