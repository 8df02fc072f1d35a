import asyncio
from typing import Awaitable, Callable, List, Optional

import structlog

from shanthi_store.client.api_client import ApiClient
from shanthi_store.client.errors import StorefrontError
from shanthi_store.client.notifier import Notifier

logger = structlog.get_logger()

PENDING = "PENDING"
COMPLETED = "COMPLETED"
FAILED = "FAILED"
TERMINAL_STATES = {COMPLETED, FAILED}

PENDING_MESSAGE = "Payment is still pending. Please check back later."


class OrderStatusPoller:
    """Polls PhonePe payment state for one order.

    The first check runs immediately and the rest follow every `interval`
    seconds; `max_attempts` counts all of them. Polling ends on a terminal
    state, when the attempts run out, or on `stop()`.
    """

    def __init__(
        self,
        api: ApiClient,
        order: dict,
        notifier: Notifier,
        interval: float = 30.0,
        max_attempts: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api = api
        self.order = order
        self.notifier = notifier
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.attempts = 0
        self.states: List[Optional[str]] = []
        self.state: Optional[str] = None

    async def check_once(self) -> Optional[str]:
        self.attempts += 1
        try:
            data = await self.api.get(f"phonepe/order-status/{self.order['id']}")
        except StorefrontError as exc:
            logger.warning("payment_status_check_failed", order_id=self.order.get("id"), error=exc.message)
            self.states.append(None)
            return None

        state = ((data or {}).get("state") or PENDING).upper()
        self.states.append(state)
        self.state = state
        if state == COMPLETED and self.order.get("status") == "Pending":
            # Display hint; the server moves the order on its own
            self.order["status"] = "Processing"
        return state

    async def run(self) -> Optional[str]:
        while self.attempts < self.max_attempts:
            state = await self.check_once()
            if state in TERMINAL_STATES:
                self._announce(state)
                return state
            if self.attempts < self.max_attempts:
                await self._sleep(self.interval)

        self.notifier.info(PENDING_MESSAGE)
        logger.info("payment_status_poll_exhausted", order_id=self.order.get("id"), attempts=self.attempts)
        return self.state

    def _announce(self, state: str) -> None:
        if state == COMPLETED:
            self.notifier.success("Payment completed")
        else:
            self.notifier.error("Payment failed")
        logger.info("payment_status_terminal", order_id=self.order.get("id"), state=state, attempts=self.attempts)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.ensure_future(self.run())
        return self._task

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def join(self) -> Optional[str]:
        if self._task is None:
            return None
        try:
            return await self._task
        except asyncio.CancelledError:
            return self.state
