from urllib.parse import urlsplit

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select, func

from coffeeshop.data.models import CartItemModel, OrderModel
from coffeeshop.services.notification_trigger import NotificationTrigger
from coffeeshop.utils.signature import verify_signature
from conftest import auth, build_app, checkout, SERVER_KEY


class ForwardingSession:
    """requests.Session.post -> drugi TestClient tej samej aplikacji."""

    def __init__(self, app):
        self.client = TestClient(app)
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append((url, headers))
        return self.client.post(urlsplit(url).path, json=json, headers=headers)


@pytest.fixture
def dev_app(session_factory, gateway, lock_service, notifier, auth_client):
    app = build_app(
        session_factory, gateway, lock_service, notifier, auth_client,
        enable_test_notifications=True,
    )
    app.state.trigger = NotificationTrigger(session=ForwardingSession(app), server_key=SERVER_KEY)
    return app


@pytest.fixture
def dev_client(dev_app):
    with TestClient(dev_app) as c:
        yield c


def test_trigger_settles_order_through_real_handler(dev_app, dev_client, db, menu, user):
    dev_client.post("/cart/items", json={"menuItemId": menu[0].id, "quantity": 1}, headers=auth())
    placed = checkout(dev_client, menu).json()
    tid = placed["transactionId"]

    resp = dev_client.post("/payment/test-notification", json={"transactionId": tid})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["notification_response"]["status"] == "success"

    sent = body["notification_sent"]
    assert sent["order_id"] == tid
    assert sent["status_code"] == "200"
    assert sent["gross_amount"] == "100000.00"
    assert sent["transaction_status"] == "settlement"
    assert sent["fraud_status"] == "accept"
    assert sent["payment_type"] == "credit_card"
    assert verify_signature(tid, "200", "100000.00", sent["signature_key"], SERVER_KEY)

    url, headers = dev_app.state.trigger.session.calls[0]
    assert url == "http://testserver/payment/notification"
    assert headers["User-Agent"] == "Midtrans-TestSuite/1.0"

    db.expire_all()
    assert db.get(OrderModel, placed["orderId"]).status == "success"
    assert db.scalar(select(func.count()).select_from(CartItemModel)) == 0


def test_trigger_requires_transaction_id(dev_client):
    resp = dev_client.post("/payment/test-notification", json={})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Transaction ID required"}


def test_trigger_reports_handler_failure(dev_client, menu, user):
    resp = dev_client.post("/payment/test-notification", json={"transactionId": "ORDER-404-1"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert "404" in body["error"]


def test_trigger_info(dev_client):
    resp = dev_client.get("/payment/test-notification")

    assert resp.status_code == 200
    assert resp.json()["example_payload"] == {"transactionId": "ORDER-123-1234567890"}


def test_trigger_not_mounted_by_default(client):
    resp = client.post("/payment/test-notification", json={"transactionId": "ORDER-1-1"})

    assert resp.status_code in (404, 405)


def test_trigger_never_mounted_in_production(session_factory, gateway, lock_service, notifier, auth_client):
    app = build_app(
        session_factory, gateway, lock_service, notifier, auth_client,
        enable_test_notifications=True,
        is_production=True,
    )

    with TestClient(app) as c:
        resp = c.post("/payment/test-notification", json={"transactionId": "ORDER-1-1"})

    assert resp.status_code in (404, 405)
