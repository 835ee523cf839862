from datetime import datetime, timezone, timedelta

import pytest
from sqlalchemy import select, func

from coffeeshop.data.models import CartItemModel, OrderModel, PaymentModel
from coffeeshop.services.payment_service import PaymentService, parse_transaction_time
from conftest import auth, checkout, notification, sign, SERVER_KEY


def _cart_count(db, user):
    db.expire_all()
    return db.scalar(
        select(func.count()).select_from(CartItemModel).where(CartItemModel.cart_id == user.cart.id)
    )


def _order(db, order_id):
    db.expire_all()
    return db.get(OrderModel, order_id)


def _payment(db, transaction_id):
    db.expire_all()
    return db.execute(
        select(PaymentModel).where(PaymentModel.transaction_id == transaction_id)
    ).scalar_one()


def _fill_cart(client, menu):
    for item in menu:
        client.post("/cart/items", json={"menuItemId": item.id, "quantity": 1}, headers=auth())


@pytest.fixture
def placed(client, menu, user):
    return checkout(client, menu).json()


@pytest.mark.parametrize(
    "transaction_status, fraud_status, expected",
    [
        ("capture", "accept", "success"),
        ("capture", "challenge", "challenge"),
        ("settlement", None, "success"),
        ("pending", None, "pending"),
        ("deny", None, "failed"),
        ("cancel", None, "failed"),
        ("expire", None, "failed"),
        ("failure", None, "failed"),
        ("refund", None, "pending"),
        ("something_new", None, "pending"),
    ],
)
def test_transition_table(client, db, placed, transaction_status, fraud_status, expected):
    tid = placed["transactionId"]

    resp = client.post("/payment/notification", json=notification(tid, transaction_status, fraud_status))

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["order_id"] == tid
    assert body["status"] == expected
    assert "processed_at" in body
    assert _order(db, placed["orderId"]).status == expected


def test_payment_row_updated_from_notification(client, db, placed):
    tid = placed["transactionId"]

    client.post(
        "/payment/notification",
        json=notification(tid, "settlement", payment_type="bank_transfer", transaction_time="2024-05-01 10:00:00"),
    )

    payment = _payment(db, tid)
    assert payment.payment_type == "bank_transfer"
    assert payment.status_code == "200"
    assert payment.transaction_status == "settlement"
    assert payment.fraud_status is None
    # WIB 10:00 => 03:00 UTC; sqlite zwraca naive
    assert payment.transaction_time.replace(tzinfo=None) in (
        datetime(2024, 5, 1, 3, 0),
        datetime(2024, 5, 1, 10, 0),
    )


def test_invalid_signature_rejected_without_state_change(client, db, lock_service, placed):
    tid = placed["transactionId"]
    payload = notification(tid, "settlement")
    payload["signature_key"] = sign(tid, "200", "55.00", server_key="wrong-key")

    resp = client.post("/payment/notification", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid signature"}
    assert _order(db, placed["orderId"]).status == "pending"
    payment = _payment(db, tid)
    assert payment.payment_type == "pending"
    assert payment.status_code == "201"
    assert lock_service.acquired == []


def test_tampered_amount_breaks_signature(client, db, placed):
    tid = placed["transactionId"]
    payload = notification(tid, "settlement", gross_amount="55.00")
    payload["gross_amount"] = "1.00"

    resp = client.post("/payment/notification", json=payload)

    assert resp.status_code == 400
    assert _order(db, placed["orderId"]).status == "pending"


def test_missing_signature_rejected(client, placed):
    payload = notification(placed["transactionId"], "settlement")
    del payload["signature_key"]

    resp = client.post("/payment/notification", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid signature"}


def test_missing_order_id_rejected(client):
    resp = client.post("/payment/notification", json={"transaction_status": "settlement"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing order_id"}


def test_wrongly_typed_fields_rejected(client):
    for payload in (
        {"order_id": {"a": 1}, "status_code": "200"},
        {"order_id": "ORDER-1-1", "transaction_status": ["settlement"]},
    ):
        resp = client.post("/payment/notification", json=payload)

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid notification payload"}


def test_unknown_transaction_not_found(client, menu, user):
    resp = client.post("/payment/notification", json=notification("ORDER-999-1", "settlement"))

    assert resp.status_code == 404
    assert resp.json() == {"error": "Payment not found"}


def test_success_clears_cart_and_redelivery_is_noop(client, db, menu, user, notifier):
    _fill_cart(client, menu)
    placed = checkout(client, menu).json()
    tid = placed["transactionId"]
    assert _cart_count(db, user) == 3

    first = client.post("/payment/notification", json=notification(tid, "settlement"))
    assert first.status_code == 200
    assert _cart_count(db, user) == 0

    again = client.post("/payment/notification", json=notification(tid, "settlement"))
    assert again.status_code == 200
    assert again.json()["status"] == "success"
    assert _cart_count(db, user) == 0
    assert notifier.sent == [(user.id, placed["orderId"], "success")]


def test_duplicate_delivery_does_not_clear_refilled_cart(client, db, menu, user):
    _fill_cart(client, menu)
    tid = checkout(client, menu).json()["transactionId"]
    client.post("/payment/notification", json=notification(tid, "settlement"))

    # user wraca do sklepu, bramka ponawia ta sama notyfikacje
    client.post("/cart/items", json={"menuItemId": menu[0].id, "quantity": 2}, headers=auth())
    client.post("/payment/notification", json=notification(tid, "settlement"))

    assert _cart_count(db, user) == 1


@pytest.mark.parametrize(
    "transaction_status, fraud_status",
    [("pending", None), ("deny", None), ("expire", None), ("capture", "challenge")],
)
def test_non_success_keeps_cart(client, db, menu, user, transaction_status, fraud_status):
    _fill_cart(client, menu)
    tid = checkout(client, menu).json()["transactionId"]

    client.post("/payment/notification", json=notification(tid, transaction_status, fraud_status))

    assert _cart_count(db, user) == 3


def test_challenge_then_settlement_reaches_success(client, db, menu, user):
    _fill_cart(client, menu)
    placed = checkout(client, menu).json()
    tid = placed["transactionId"]

    client.post("/payment/notification", json=notification(tid, "capture", "challenge"))
    assert _order(db, placed["orderId"]).status == "challenge"
    assert _cart_count(db, user) == 3

    client.post("/payment/notification", json=notification(tid, "settlement"))
    assert _order(db, placed["orderId"]).status == "success"
    assert _cart_count(db, user) == 0


def test_terminal_status_not_overwritten(client, db, placed):
    tid = placed["transactionId"]
    client.post("/payment/notification", json=notification(tid, "settlement"))

    late = client.post("/payment/notification", json=notification(tid, "expire", status_code="407"))

    assert late.status_code == 200
    assert late.json()["status"] == "success"
    assert _order(db, placed["orderId"]).status == "success"
    assert _payment(db, tid).transaction_status == "settlement"


def test_late_pending_does_not_reopen_failed_order(client, db, placed):
    tid = placed["transactionId"]
    client.post("/payment/notification", json=notification(tid, "deny"))

    client.post("/payment/notification", json=notification(tid, "pending", status_code="201"))

    assert _order(db, placed["orderId"]).status == "failed"


def test_pending_then_settlement(client, db, placed, notifier):
    tid = placed["transactionId"]

    client.post("/payment/notification", json=notification(tid, "pending", status_code="201"))
    client.post("/payment/notification", json=notification(tid, "settlement"))

    assert _order(db, placed["orderId"]).status == "success"
    # pending -> pending to nie zmiana statusu
    assert [s for _, _, s in notifier.sent] == ["success"]


def test_locked_transaction_returns_conflict(client, db, lock_service, placed):
    tid = placed["transactionId"]
    lock_service.held[tid] = "other-worker"

    resp = client.post("/payment/notification", json=notification(tid, "settlement"))

    assert resp.status_code == 409
    assert _order(db, placed["orderId"]).status == "pending"
    assert lock_service.held[tid] == "other-worker"


def test_lock_released_after_processing(client, lock_service, placed):
    tid = placed["transactionId"]

    client.post("/payment/notification", json=notification(tid, "settlement"))

    assert lock_service.acquired == [tid]
    assert lock_service.held == {}


def test_numeric_fields_are_accepted(client, db, placed):
    tid = placed["transactionId"]
    payload = notification(tid, "settlement", status_code="200", gross_amount="55")
    payload["status_code"] = 200
    payload["gross_amount"] = 55

    resp = client.post("/payment/notification", json=payload)

    assert resp.status_code == 200
    assert _order(db, placed["orderId"]).status == "success"


def test_notification_liveness(client):
    resp = client.get("/payment/notification")

    assert resp.status_code == 200
    assert resp.json()["status"] == "active"


def test_capture_challenge_can_map_to_success(client, db, lock_service, placed):
    tid = placed["transactionId"]
    service = PaymentService(
        db,
        lock_service=lock_service,
        server_key=SERVER_KEY,
        capture_challenge_status="success",
    )

    result = service.handle_notification(notification(tid, "capture", "challenge"))

    assert result["status"] == "success"
    assert _order(db, placed["orderId"]).status == "success"


def test_parse_transaction_time_formats():
    assert parse_transaction_time("2024-05-01 10:00:00") == datetime(
        2024, 5, 1, 10, 0, tzinfo=timezone(timedelta(hours=7))
    )
    assert parse_transaction_time("2024-05-01T03:00:00Z") == datetime(2024, 5, 1, 3, 0, tzinfo=timezone.utc)


def test_parse_transaction_time_falls_back_to_now():
    before = datetime.now(timezone.utc)

    for value in ("not-a-date", "", None):
        parsed = parse_transaction_time(value)
        assert before <= parsed <= datetime.now(timezone.utc)
