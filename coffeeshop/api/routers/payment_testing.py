# coffeeshop/api/routers/payment_testing.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from coffeeshop.api.deps import get_trigger, error_response, internal_error_response
from coffeeshop.domain.errors import ServiceError
from coffeeshop.domain.schemas import TriggerNotificationIn

# montowany tylko poza produkcja (patrz create_app)
router = APIRouter(prefix="/payment", tags=["payment-dev"])


@router.post("/test-notification")
def test_notification(
    request: Request,
    payload: TriggerNotificationIn | None = None,
    trigger=Depends(get_trigger),
):
    base_url = request.app.state.public_base_url or str(request.base_url)
    transaction_id = payload.transaction_id if payload else None
    try:
        return trigger.send(transaction_id, base_url)
    except ServiceError as e:
        return error_response(e, success=False)
    except Exception:
        return internal_error_response("test notification", success=False)


@router.get("/test-notification")
def test_notification_info():
    return {
        "message": "Test notification endpoint is active",
        "description": "Use POST method with transactionId to test payment notifications",
        "example_payload": {"transactionId": "ORDER-123-1234567890"},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
