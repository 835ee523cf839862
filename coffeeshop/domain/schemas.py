# coffeeshop/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional
from decimal import Decimal
from datetime import datetime


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- users ----------

class UserRead(BaseModel):
    id: int
    external_id: str
    email: str
    name: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserSyncOut(BaseModel):
    message: str
    user: UserRead


# ---------- cart ----------

class CartItemIn(CamelModel):
    """Dodanie pozycji z menu do koszyka."""

    menu_item_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0)


class CartItemOut(CamelModel):
    menu_item_id: int
    name: str
    price: Decimal
    quantity: int
    subtotal: Decimal


class CartOut(CamelModel):
    cart_id: int
    user_id: int
    items: List[CartItemOut]
    total: Decimal


# ---------- checkout ----------

class CheckoutItemIn(BaseModel):
    """
    Pozycja z koszyka klienta. Liczy sie tylko id i quantity,
    cena jest brana z menu po stronie serwera.
    """

    id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    name: Optional[str] = None
    price: Optional[Decimal] = None


class CustomerDetailsIn(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None


class PaymentCreateIn(CamelModel):
    items: List[CheckoutItemIn]
    total: Optional[Decimal] = None
    customer_details: CustomerDetailsIn = Field(default_factory=CustomerDetailsIn)


class PaymentCreateOut(CamelModel):
    success: bool
    token: str
    redirect_url: Optional[str] = None
    order_id: int
    transaction_id: str


# ---------- notification ----------

class PaymentNotificationIn(BaseModel):
    """Payload notyfikacji Midtrans, liczby zamieniane na stringi."""

    order_id: Optional[str] = None
    status_code: Optional[str] = None
    gross_amount: Optional[str] = None
    signature_key: Optional[str] = None
    transaction_status: Optional[str] = None
    fraud_status: Optional[str] = None
    payment_type: Optional[str] = None
    transaction_time: Optional[str] = None

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class PaymentNotificationOut(BaseModel):
    success: bool
    order_id: str
    status: str
    processed_at: datetime


class TriggerNotificationIn(CamelModel):
    transaction_id: Optional[str] = None


# ---------- orders ----------

class OrderItemOut(CamelModel):
    menu_item_id: int
    name: Optional[str] = None
    quantity: int
    price_each: Decimal


class OrderOut(CamelModel):
    id: int
    user_id: int
    status: str
    total: Decimal
    created_at: datetime
    transaction_id: Optional[str] = None
    items: List[OrderItemOut]


class OrderListOut(BaseModel):
    success: bool
    orders: List[OrderOut]
