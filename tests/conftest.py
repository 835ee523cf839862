"""Shared fixtures: sqlite per test, fake gateway/lock/notifier/auth injected into create_app()."""

import os

# przed importem coffeeshop, settings czytane przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MIDTRANS_SERVER_KEY"] = "SB-Mid-server-test"
os.environ["CAPTURE_CHALLENGE_STATUS"] = "challenge"
os.environ["ENABLE_TEST_NOTIFICATIONS"] = "false"
os.environ["MIDTRANS_IS_PRODUCTION"] = "false"
os.environ["PUBLIC_BASE_URL"] = "http://localhost:8000"
os.environ["PAYMENT_NOTIFICATION_URL"] = "http://localhost:8000/payment/notification"

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coffeeshop.api import create_app
from coffeeshop.data.database import Base, get_db
from coffeeshop.data.models import CartModel, MenuItemModel, UserModel
from coffeeshop.domain.errors import GatewayError, NotFound
from coffeeshop.services.notification_trigger import NotificationTrigger
from coffeeshop.utils.signature import compute_signature

SERVER_KEY = "SB-Mid-server-test"
USER_ID = "user_2abcDEF"
OTHER_USER_ID = "user_9xyzQRS"


class FakeGateway:
    def __init__(self):
        self.requests = []
        self.notification_urls = []
        self.statuses = {}
        self.fail = False

    def create_transaction(self, parameters, notification_url=None):
        if self.fail:
            raise GatewayError("Payment gateway returned HTTP 500")
        self.requests.append(parameters)
        self.notification_urls.append(notification_url)
        n = len(self.requests)
        return {
            "token": f"snap-token-{n}",
            "redirect_url": f"https://app.sandbox.midtrans.com/snap/v4/redirection/snap-token-{n}",
        }

    def get_transaction_status(self, transaction_id):
        return self.statuses.get(transaction_id, {"order_id": transaction_id, "status_code": "404"})


class FakeLockService:
    def __init__(self):
        self.held = {}
        self.acquired = []

    @staticmethod
    def new_token():
        return uuid.uuid4().hex

    def acquire_payment_lock(self, transaction_id, token):
        if transaction_id in self.held:
            return False
        self.held[transaction_id] = token
        self.acquired.append(transaction_id)
        return True

    def release_payment_lock(self, transaction_id, token):
        if self.held.get(transaction_id) == token:
            del self.held[transaction_id]
            return True
        return False


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send_order_status_notification(self, user_id, order_id, status):
        self.sent.append((user_id, order_id, status))


class FakeAuthClient:
    def __init__(self, profiles=None):
        self.profiles = profiles or {}

    def fetch_profile(self, external_id):
        if external_id not in self.profiles:
            raise NotFound("User not found")
        return self.profiles[external_id]


def auth(external_id=USER_ID):
    return {"X-Auth-User-Id": external_id}


def sign(order_id, status_code, gross_amount, server_key=SERVER_KEY):
    return compute_signature(order_id, status_code, gross_amount, server_key)


def notification(transaction_id, transaction_status, fraud_status=None, status_code="200",
                 gross_amount="55.00", **extra):
    payload = {
        "order_id": transaction_id,
        "status_code": status_code,
        "gross_amount": gross_amount,
        "transaction_status": transaction_status,
        "fraud_status": fraud_status,
        "payment_type": "credit_card",
        "transaction_time": "2024-05-01 10:00:00",
        "signature_key": sign(transaction_id, status_code, gross_amount),
    }
    payload.update(extra)
    return payload


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'coffeeshop.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def auth_client():
    return FakeAuthClient(
        {
            USER_ID: {
                "external_id": USER_ID,
                "email": "budi@example.com",
                "first_name": "Budi",
                "last_name": "Santoso",
                "image_url": "https://img.example.com/budi.png",
            }
        }
    )


def build_app(session_factory, gateway, lock_service, notifier, auth_client, **kwargs):
    kwargs.setdefault("enable_test_notifications", False)
    kwargs.setdefault("is_production", False)
    app = create_app(
        gateway=gateway,
        lock_service=lock_service,
        notifier=notifier,
        auth_client=auth_client,
        trigger=NotificationTrigger(server_key=SERVER_KEY),
        public_base_url="http://testserver",
        **kwargs,
    )

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def app(session_factory, gateway, lock_service, notifier, auth_client):
    return build_app(session_factory, gateway, lock_service, notifier, auth_client)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def menu(db):
    """Trzy pozycje: ceny 10, 20, 5."""
    items = [
        MenuItemModel(name="Espresso", category="coffee", stock=10, price=Decimal("10")),
        MenuItemModel(name="Cappuccino", category="coffee", stock=10, price=Decimal("20")),
        MenuItemModel(name="Croissant", category="pastry", stock=10, price=Decimal("5")),
    ]
    db.add_all(items)
    db.commit()
    return items


@pytest.fixture
def user(db):
    user = UserModel(external_id=USER_ID, email="budi@example.com", name="Budi Santoso")
    db.add(user)
    db.flush()
    db.add(CartModel(user_id=user.id))
    db.commit()
    return user


def checkout(client, menu, quantities=(2, 1, 3), external_id=USER_ID, **body):
    payload = {
        "items": [
            {"id": item.id, "name": item.name, "price": 1, "quantity": q}
            for item, q in zip(menu, quantities)
        ],
    }
    payload.update(body)
    return client.post("/payment/create", json=payload, headers=auth(external_id))
