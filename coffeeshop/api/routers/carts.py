# coffeeshop/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coffeeshop.api.deps import get_identity, require_identity, error_response, internal_error_response
from coffeeshop.data.database import get_db
from coffeeshop.domain.errors import ServiceError
from coffeeshop.domain.schemas import CartItemIn, CartItemUpdate, CartOut
from coffeeshop.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(identity: str | None = Depends(get_identity), db: Session = Depends(get_db)):
    svc = CartService(db)
    try:
        return svc.get_cart(require_identity(identity))
    except ServiceError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("get cart")


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    identity: str | None = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.add_item(require_identity(identity), payload.menu_item_id, payload.quantity)
    except ServiceError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("add cart item")


@router.patch("/items/{menu_item_id}", response_model=CartOut)
def update_item(
    menu_item_id: int,
    payload: CartItemUpdate,
    identity: str | None = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.set_quantity(require_identity(identity), menu_item_id, payload.quantity)
    except ServiceError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("update cart item")


@router.delete("/items/{menu_item_id}", response_model=CartOut)
def remove_item(
    menu_item_id: int,
    identity: str | None = Depends(get_identity),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.remove_item(require_identity(identity), menu_item_id)
    except ServiceError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("remove cart item")


@router.delete("/items", response_model=CartOut)
def clear_cart(identity: str | None = Depends(get_identity), db: Session = Depends(get_db)):
    svc = CartService(db)
    try:
        return svc.clear_cart(require_identity(identity))
    except ServiceError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("clear cart")
