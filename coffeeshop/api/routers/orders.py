# coffeeshop/api/routers/orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coffeeshop.api.deps import get_identity, require_identity, error_response, internal_error_response
from coffeeshop.data.database import get_db
from coffeeshop.domain.errors import ServiceError
from coffeeshop.domain.schemas import OrderListOut, OrderOut
from coffeeshop.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=OrderListOut)
def list_orders(
    identity: str | None = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """
    Historia zamowien usera, od najnowszych.
    """
    svc = OrderService(db)
    try:
        return {"success": True, "orders": svc.list_orders(require_identity(identity))}
    except ServiceError as e:
        return error_response(e, success=False)
    except Exception:
        return internal_error_response("list orders", success=False)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    identity: str | None = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = OrderService(db)
    try:
        return svc.get_order(order_id, require_identity(identity))
    except ServiceError as e:
        return error_response(e)
    except Exception:
        return internal_error_response(f"get order {order_id}")
