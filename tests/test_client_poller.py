import asyncio

import httpx
import pytest

from shanthi_store.client.api_client import ApiClient
from shanthi_store.client.notifier import Notifier
from shanthi_store.client.poller import PENDING_MESSAGE, OrderStatusPoller
from shanthi_store.client.session import AuthSession
from tests.factories import CUSTOMER


class _ScriptedStatus:
    """Answers the order-status endpoint from a fixed script of states."""

    def __init__(self, states):
        self.states = list(states)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        state = self.states[min(len(self.requests), len(self.states)) - 1]
        if state is None:
            return httpx.Response(503, json={"success": False, "message": "Could not fetch payment status"})
        return httpx.Response(200, json={"success": True, "data": {"orderId": 7, "state": state}})


async def _no_sleep(seconds: float) -> None:
    _no_sleep.calls.append(seconds)


def _poller(script: _ScriptedStatus, order: dict = None, max_attempts: int = 3):
    session = AuthSession(token="token")
    api = ApiClient(session, "http://testserver/api/v1", transport=httpx.MockTransport(script))
    notifier = Notifier(debounce_ms=0)
    _no_sleep.calls = []
    poller = OrderStatusPoller(
        api,
        order or {"id": 7, "status": "Pending"},
        notifier,
        interval=30,
        max_attempts=max_attempts,
        sleep=_no_sleep,
    )
    return poller, api, notifier


@pytest.mark.asyncio
async def test_pending_throughout_stops_after_max_attempts():
    script = _ScriptedStatus(["PENDING", "PENDING", "PENDING", "COMPLETED"])
    poller, api, notifier = _poller(script)

    state = await poller.run()
    await api.aclose()

    assert state == "PENDING"
    assert len(script.requests) == 3
    assert _no_sleep.calls == [30, 30]
    assert notifier.last.message == PENDING_MESSAGE


@pytest.mark.asyncio
async def test_completed_on_third_check_stops_immediately():
    script = _ScriptedStatus(["PENDING", "PENDING", "COMPLETED"])
    order = {"id": 7, "status": "Pending"}
    poller, api, notifier = _poller(script, order)

    state = await poller.run()
    await api.aclose()

    assert state == "COMPLETED"
    assert len(script.requests) == 3
    assert _no_sleep.calls == [30, 30]
    assert order["status"] == "Processing"
    assert notifier.last.message == "Payment completed"


@pytest.mark.asyncio
async def test_failed_state_is_terminal():
    script = _ScriptedStatus(["FAILED"])
    order = {"id": 7, "status": "Pending"}
    poller, api, notifier = _poller(script, order)

    state = await poller.run()
    await api.aclose()

    assert state == "FAILED"
    assert len(script.requests) == 1
    assert order["status"] == "Pending"
    assert notifier.last.level == "error"


@pytest.mark.asyncio
async def test_completed_does_not_rewrite_a_later_status():
    script = _ScriptedStatus(["COMPLETED"])
    order = {"id": 7, "status": "Shipped"}
    poller, api, _ = _poller(script, order)

    await poller.run()
    await api.aclose()

    assert order["status"] == "Shipped"


@pytest.mark.asyncio
async def test_errors_use_up_attempts():
    script = _ScriptedStatus([None, "PENDING", None])
    poller, api, notifier = _poller(script)

    await poller.run()
    await api.aclose()

    assert poller.attempts == 3
    assert poller.states == [None, "PENDING", None]
    assert notifier.last.message == PENDING_MESSAGE


@pytest.mark.asyncio
async def test_stop_cancels_scheduled_checks():
    script = _ScriptedStatus(["PENDING"])
    session = AuthSession(token="token")
    api = ApiClient(session, "http://testserver/api/v1", transport=httpx.MockTransport(script))
    poller = OrderStatusPoller(api, {"id": 7, "status": "Pending"}, Notifier(debounce_ms=0), interval=60)

    poller.start()
    while not poller.states:
        await asyncio.sleep(0)
    poller.stop()
    state = await poller.join()
    await api.aclose()

    assert state == "PENDING"
    assert len(script.requests) == 1
    assert poller.running is False


@pytest.mark.asyncio
async def test_poller_against_live_status_endpoint(signed_in, products: dict, fake_phonepe):
    await signed_in.cart.add_to_cart(
        {"id": products["A"].id, "title": products["A"].title, "price": products["A"].price,
         "images": list(products["A"].images), "category": products["A"].category}
    )
    started = await signed_in.checkout.start_phonepe_checkout(CUSTOMER)
    fake_phonepe.states = ["PENDING", "COMPLETED"]
    poller = signed_in.poller_for(started.order)
    poller._sleep = _no_sleep
    _no_sleep.calls = []

    state = await poller.run()

    assert state == "COMPLETED"
    assert poller.attempts == 2
    assert started.order["status"] == "Processing"
    detail = await signed_in.api.get(f"orders/{started.order['id']}")
    assert detail["status"] == "Processing"
