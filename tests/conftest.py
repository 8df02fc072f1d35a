import os
import tempfile
from collections.abc import AsyncGenerator, Generator

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

os.environ["ENVIRONMENT"] = "development"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-shanthi-store-suite")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_shanthi_store.db")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("PHONEPE_CLIENT_ID", "phonepe-client")
os.environ.setdefault("PHONEPE_CLIENT_SECRET", "phonepe-secret")
os.environ.setdefault("PHONEPE_WEBHOOK_USERNAME", "hook-user")
os.environ.setdefault("PHONEPE_WEBHOOK_PASSWORD", "hook-pass")

import shanthi_store.models  # noqa: E402,F401
from shanthi_store.client.config import ClientSettings  # noqa: E402
from shanthi_store.client.local_storage import LocalStorage  # noqa: E402
from shanthi_store.client.notifier import Notifier  # noqa: E402
from shanthi_store.client.storefront import Storefront  # noqa: E402
from shanthi_store.core.exceptions import PaymentGatewayError  # noqa: E402
from shanthi_store.db.base_class import Base  # noqa: E402
from shanthi_store.db.session import get_db  # noqa: E402
from shanthi_store.main import app  # noqa: E402
from shanthi_store.models.user import User, UserRole  # noqa: E402
from shanthi_store.services.payment_service import get_razorpay_client  # noqa: E402
from shanthi_store.services.phonepe_service import get_phonepe_gateway  # noqa: E402
from tests.factories import access_token_for, auth_headers, create_product, create_user  # noqa: E402


@pytest.fixture()
def session_factory() -> Generator[sessionmaker, None, None]:
    db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    db_file.close()

    engine = create_engine(
        f"sqlite:///{db_file.name}",
        connect_args={"check_same_thread": False},
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        os.unlink(db_file.name)


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def api_overrides(db_session: Session) -> Generator[None, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.limiter.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(api_overrides) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def customer(db_session: Session) -> User:
    return create_user(db_session, "shopper@example.com")


@pytest.fixture()
def other_customer(db_session: Session) -> User:
    return create_user(db_session, "other@example.com")


@pytest.fixture()
def admin(db_session: Session) -> User:
    return create_user(db_session, "admin@example.com", role=UserRole.ADMIN)


@pytest.fixture()
def headers(customer: User) -> dict:
    return auth_headers(customer)


@pytest.fixture()
def products(db_session: Session) -> dict:
    return {
        "A": create_product(db_session, "Lakshmi Haram", 1000.0),
        "B": create_product(db_session, "Jhumka Earrings", 500.0, category="Earrings"),
        "C": create_product(db_session, "Kada Bangle", 750.0, category="Bangles"),
    }


class _FakeRazorpayOrders:
    def __init__(self):
        self.created = []
        self.fail = False

    def create(self, data: dict) -> dict:
        if self.fail:
            raise RuntimeError("gateway unavailable")
        gateway_order = {
            "id": f"order_test{len(self.created) + 1}",
            "amount": data["amount"],
            "currency": data["currency"],
            "receipt": data.get("receipt"),
            "status": "created",
        }
        self.created.append(gateway_order)
        return gateway_order


class FakeRazorpayClient:
    def __init__(self):
        self.order = _FakeRazorpayOrders()


@pytest.fixture()
def fake_razorpay(api_overrides) -> FakeRazorpayClient:
    fake = FakeRazorpayClient()
    app.dependency_overrides[get_razorpay_client] = lambda: fake
    return fake


class FakePhonePeGateway:
    """Scripted PhonePe gateway: states are served in order, the last one repeats."""

    def __init__(self):
        self.checkouts = []
        self.status_calls = []
        self.states = ["PENDING"]
        self.fail_checkout = False

    def create_checkout(self, merchant_order_id: str, amount_paise: int, redirect_url: str) -> dict:
        if self.fail_checkout:
            raise PaymentGatewayError("PhonePe request failed: 503", 503)
        self.checkouts.append(
            {"merchantOrderId": merchant_order_id, "amount": amount_paise, "redirectUrl": redirect_url}
        )
        return {
            "orderId": f"OMO{len(self.checkouts):04d}",
            "state": "PENDING",
            "redirectUrl": f"https://mercury.phonepe.test/pay/{merchant_order_id}",
            "expireAt": 1893456000000,
        }

    def get_order_status(self, merchant_order_id: str) -> dict:
        self.status_calls.append(merchant_order_id)
        index = min(len(self.status_calls), len(self.states)) - 1
        state = self.states[index]
        details = [{"transactionId": f"TXN{len(self.status_calls)}", "state": state}] if state != "PENDING" else []
        return {"orderId": "OMO0001", "state": state, "amount": 0, "paymentDetails": details}


@pytest.fixture()
def fake_phonepe(api_overrides) -> FakePhonePeGateway:
    fake = FakePhonePeGateway()
    app.dependency_overrides[get_phonepe_gateway] = lambda: fake
    return fake


@pytest_asyncio.fixture()
async def storefront(api_overrides) -> AsyncGenerator[Storefront, None]:
    front = Storefront(
        settings=ClientSettings(API_BASE_URL="http://testserver/api/v1"),
        transport=httpx.ASGITransport(app=app),
        notifier=Notifier(debounce_ms=0),
        storage=LocalStorage(),
    )
    try:
        yield front
    finally:
        await front.aclose()


@pytest_asyncio.fixture()
async def signed_in(storefront: Storefront, customer: User) -> Storefront:
    await storefront.authenticate(access_token_for(customer), {"id": customer.id, "email": customer.email})
    return storefront
