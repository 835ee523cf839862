# coffeeshop/api/routers/payments.py
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from coffeeshop.api.deps import (
    get_gateway,
    get_identity,
    get_lock_service,
    get_notifier,
    require_identity,
    error_response,
    internal_error_response,
)
from coffeeshop.data.database import get_db
from coffeeshop.domain.errors import ServiceError
from coffeeshop.domain.schemas import PaymentCreateIn, PaymentCreateOut, PaymentNotificationOut
from coffeeshop.services.order_service import OrderService
from coffeeshop.services.payment_service import PaymentService

router = APIRouter(prefix="/payment", tags=["payment"])


@router.post("/create", response_model=PaymentCreateOut)
def create_payment(
    payload: PaymentCreateIn,
    identity: str | None = Depends(get_identity),
    gateway=Depends(get_gateway),
    db: Session = Depends(get_db),
):
    """
    Checkout: zamowienie + platnosc + token Snap.
    Klient przekierowuje usera do widgetu Midtrans.
    """
    svc = OrderService(db, gateway=gateway)
    try:
        return svc.create_order(
            require_identity(identity),
            payload.items,
            payload.total,
            payload.customer_details,
        )
    except ServiceError as e:
        return error_response(e, success=False)
    except Exception:
        return internal_error_response("payment create", success=False)


@router.post("/notification", response_model=PaymentNotificationOut)
def payment_notification(
    payload: Dict[str, Any] = Body(default_factory=dict),
    lock_service=Depends(get_lock_service),
    notifier=Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """
    Notyfikacja z Midtrans. Bez auth, autentycznosc tylko z podpisu.
    Nie-2xx => Midtrans ponowi, dlatego obsluga jest idempotentna.
    """
    svc = PaymentService(db, lock_service=lock_service, notifier=notifier)
    try:
        return svc.handle_notification(payload)
    except ServiceError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("payment notification")


@router.get("/notification")
def notification_status():
    return {
        "status": "active",
        "message": "Payment notification endpoint is working",
        "endpoint": "/payment/notification",
        "methods_supported": ["GET", "POST"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
