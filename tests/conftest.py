import json
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.db import Base, get_db
from core import config as core_config
from models.user import User
from models.order import Order
from models.order_item import OrderItem
from security.password import hash_password
from security import jwt as jwt_utils
from services import orders_client, payonhub


@pytest.fixture(autouse=True)
def test_settings():
    settings = core_config.settings
    original = (
        settings.APP_ENV,
        settings.JWT_SECRET,
        settings.PAYONHUB_PUBLIC_KEY,
        settings.PAYONHUB_SECRET_KEY,
        settings.PAYONHUB_BASE_URL,
    )
    settings.APP_ENV = "development"
    settings.JWT_SECRET = "test-secret"
    settings.PAYONHUB_PUBLIC_KEY = "pk_test"
    settings.PAYONHUB_SECRET_KEY = "sk_test"
    settings.PAYONHUB_BASE_URL = "https://api.payonhub.com"
    yield settings
    (
        settings.APP_ENV,
        settings.JWT_SECRET,
        settings.PAYONHUB_PUBLIC_KEY,
        settings.PAYONHUB_SECRET_KEY,
        settings.PAYONHUB_BASE_URL,
    ) = original


@pytest.fixture()
def db_session_override():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()

    def _get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield db
    finally:
        db.close()
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session_override):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def test_user(db_session_override):
    """Create a test customer."""
    user = User(
        name="Maria Silva",
        email="maria@example.com",
        password_hash=hash_password("testpass123"),
    )
    db_session_override.add(user)
    db_session_override.commit()
    db_session_override.refresh(user)
    return user


@pytest.fixture
def test_order(db_session_override, test_user):
    """Create a two-item order owned by the test customer."""
    order = Order(user_id=test_user.id, total=Decimal("19.99"), status="pending")
    order.items = [
        OrderItem(product_id=1, name="Camiseta", quantity=1, unit_price=Decimal("9.99")),
        OrderItem(product_id=2, name="Caneca", quantity=2, unit_price=Decimal("5.00")),
    ]
    db_session_override.add(order)
    db_session_override.commit()
    db_session_override.refresh(order)
    return order


@pytest.fixture
def auth_token(test_user):
    """Generate a valid session token for the test customer."""
    return jwt_utils.create_access_token(str(test_user.id))


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeUpstreams:
    """Answers the order endpoint and PayOnHub for the outbound httpx clients.

    A reply is an ``httpx.Response``, an exception to raise, or a coroutine
    function taking the request.
    """

    def __init__(self):
        self.order_reply = None
        self.gateway_reply = None
        self.requests = []

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == payonhub.TRANSACTIONS_PATH:
            reply = self.gateway_reply
        else:
            reply = self.order_reply
        if reply is None:
            raise AssertionError(f"unexpected call to {request.url}")
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            # fresh copy so one canned reply can serve several calls
            return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)
        return await reply(request)

    @property
    def order_requests(self):
        return [r for r in self.requests if r.url.path.startswith("/api/orders/")]

    @property
    def gateway_requests(self):
        return [r for r in self.requests if r.url.path == payonhub.TRANSACTIONS_PATH]

    def gateway_payload(self) -> dict:
        return json.loads(self.gateway_requests[-1].content)


@pytest.fixture
def upstreams(monkeypatch):
    fake = FakeUpstreams()

    def _client(**kwargs):
        return httpx.AsyncClient(transport=httpx.MockTransport(fake.handle), **kwargs)

    monkeypatch.setattr(orders_client, "http_client", _client)
    monkeypatch.setattr(payonhub, "http_client", _client)
    return fake


@pytest.fixture
def loopback_orders():
    """Serve order lookups from the app under test, forwarding the cookie header."""

    async def _forward(request: httpx.Request) -> httpx.Response:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as inner:
            answer = await inner.get(request.url.path, headers={"cookie": request.headers.get("cookie", "")})
        return httpx.Response(answer.status_code, headers=answer.headers, content=answer.content)

    return _forward
