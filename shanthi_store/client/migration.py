from dataclasses import dataclass, field
from typing import List

import structlog

from shanthi_store.client.api_client import ApiClient
from shanthi_store.client.cart_store import CartStore, cart_line_payload, product_id_of
from shanthi_store.client.errors import AlreadyExists, MigrationItemFailure, StorefrontError
from shanthi_store.client.local_storage import CART_KEY, WISHLIST_KEY, LocalStorage
from shanthi_store.client.notifier import Notifier
from shanthi_store.client.session import AuthSession
from shanthi_store.client.wishlist_store import WishlistStore

logger = structlog.get_logger()


def _entries(stored) -> list:
    return list(stored) if isinstance(stored, list) else []


@dataclass
class MigrationReport:
    attempted: int = 0
    migrated: int = 0
    duplicates: int = 0
    failed: List[MigrationItemFailure] = field(default_factory=list)
    skipped: bool = False


class LocalMigration:
    """Moves guest cart/wishlist entries into the signed-in account, once per session.

    Entries are posted one at a time in stored order. A failing entry is
    logged and skipped; the local copy is cleared afterwards regardless,
    accepting that a failed entry is lost.
    """

    def __init__(
        self,
        api: ApiClient,
        session: AuthSession,
        storage: LocalStorage,
        cart: CartStore,
        wishlist: WishlistStore,
        notifier: Notifier,
    ):
        self.api = api
        self.session = session
        self.storage = storage
        self.cart = cart
        self.wishlist = wishlist
        self.notifier = notifier

    async def _migrate(self, report: MigrationReport, entries: list, build, path: str, kind: str) -> None:
        for entry in entries:
            report.attempted += 1
            try:
                payload = build(entry)
            except (StorefrontError, AttributeError, TypeError, ValueError) as exc:
                # A malformed guest entry is dropped without blocking the rest
                failure = MigrationItemFailure(entry, exc)
                report.failed.append(failure)
                logger.warning("migration_item_invalid", kind=kind, error=str(exc))
                continue
            try:
                await self.api.post(path, json=payload)
                report.migrated += 1
            except AlreadyExists:
                report.duplicates += 1
            except StorefrontError as exc:
                failure = MigrationItemFailure(entry, exc)
                report.failed.append(failure)
                logger.warning("migration_item_failed", kind=kind, error=exc.message)

    async def run(self) -> MigrationReport:
        if not self.session.is_authenticated or self.session.migrated:
            return MigrationReport(skipped=True)
        self.session.migrated = True

        report = MigrationReport()
        local_cart = _entries(self.storage.get(CART_KEY))
        local_wishlist = _entries(self.storage.get(WISHLIST_KEY))

        await self._migrate(report, local_cart, cart_line_payload, "cart/", "cart")
        await self._migrate(
            report,
            local_wishlist,
            lambda entry: {"productId": product_id_of(entry)},
            "wishlist/",
            "wishlist",
        )

        self.storage.remove(CART_KEY)
        self.storage.remove(WISHLIST_KEY)
        await self.cart.fetch()
        await self.wishlist.fetch()

        if report.attempted:
            self.notifier.info("Your saved items have been synced to your account")
        logger.info(
            "local_migration_completed",
            attempted=report.attempted,
            migrated=report.migrated,
            duplicates=report.duplicates,
            failed=len(report.failed),
        )
        return report
