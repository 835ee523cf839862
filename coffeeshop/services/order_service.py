# coffeeshop/services/order_service.py
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from coffeeshop.data.models.order import OrderModel, OrderItemModel
from coffeeshop.data.models.payment import PaymentModel
from coffeeshop.domain.errors import BadRequest, Forbidden, NotFound, ServiceError, InternalError
from coffeeshop.domain.schemas import CheckoutItemIn, CustomerDetailsIn
from coffeeshop.domain.status import PENDING
from coffeeshop.repos.menu_repo import MenuRepo
from coffeeshop.repos.order_repo import OrderRepo
from coffeeshop.repos.payment_repo import PaymentRepo
from coffeeshop.repos.user_repo import UserRepo
from coffeeshop.services.gateway_client import MidtransGateway
from coffeeshop.utils.settings import PUBLIC_BASE_URL, PAYMENT_NOTIFICATION_URL
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FIRST_NAME = "Customer"
DEFAULT_PHONE = "08123456789"
DEFAULT_ADDRESS = "Jl. Example No. 123"
DEFAULT_CITY = "Jakarta"
DEFAULT_POSTAL_CODE = "12345"
DEFAULT_COUNTRY_CODE = "IDN"


def make_transaction_id(order_id: int) -> str:
    # id zamowienia w prefiksie => unikalne per checkout nawet w tej samej ms
    return f"ORDER-{order_id}-{time.time_ns() // 1_000_000}"


def gateway_amount(amount: Decimal) -> int:
    """Midtrans przyjmuje tylko calkowite kwoty w IDR."""
    if amount != amount.to_integral_value():
        raise BadRequest(f"Amount {amount} is not a whole IDR value")
    return int(amount)


class OrderService:
    """
    Domena zamowien:
    - checkout: koszyk -> order + order items + payment + token Snap
    - historia zamowien usera
    """

    def __init__(
        self,
        db: Session,
        gateway: MidtransGateway | None = None,
        base_url: str | None = None,
        notification_url: str | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.payment_repo = PaymentRepo(db)
        self.menu_repo = MenuRepo(db)
        self.user_repo = UserRepo(db)
        self.gateway = gateway
        self.base_url = (base_url or PUBLIC_BASE_URL).rstrip("/")
        self.notification_url = notification_url or PAYMENT_NOTIFICATION_URL

    def _price_lines(self, items: List[CheckoutItemIn]) -> List[Dict[str, Any]]:
        if not items:
            raise BadRequest("Cart is empty")

        menu = self.menu_repo.get_menu_items(i.id for i in items)

        lines = []
        for item in items:
            menu_item = menu.get(item.id)
            if not menu_item:
                raise BadRequest(f"Unknown menu item {item.id}")

            # cena zawsze z menu, nie od klienta
            price = Decimal(menu_item.price)
            gateway_amount(price)
            lines.append(
                {
                    "menu_item_id": menu_item.id,
                    "name": menu_item.name,
                    "quantity": item.quantity,
                    "price": price,
                }
            )
        return lines

    def _customer_details(self, user, customer: CustomerDetailsIn) -> Dict[str, Any]:
        name_parts = (user.name or "").split()
        first_name = customer.first_name or (name_parts[0] if name_parts else DEFAULT_FIRST_NAME)
        last_name = customer.last_name or " ".join(name_parts[1:])
        email = customer.email or user.email
        phone = customer.phone or DEFAULT_PHONE

        return {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone": phone,
            "billing_address": {
                "first_name": first_name,
                "last_name": last_name,
                "email": email,
                "phone": phone,
                "address": customer.address or DEFAULT_ADDRESS,
                "city": customer.city or DEFAULT_CITY,
                "postal_code": customer.postal_code or DEFAULT_POSTAL_CODE,
                "country_code": DEFAULT_COUNTRY_CODE,
            },
        }

    def build_transaction_request(
        self,
        transaction_id: str,
        total: Decimal,
        lines: List[Dict[str, Any]],
        customer_details: Dict[str, Any],
    ) -> Dict[str, Any]:
        return {
            "transaction_details": {
                "order_id": transaction_id,
                "gross_amount": gateway_amount(total),
            },
            "credit_card": {"secure": True},
            "item_details": [
                {
                    "id": str(line["menu_item_id"]),
                    "price": gateway_amount(line["price"]),
                    "quantity": line["quantity"],
                    "name": line["name"],
                }
                for line in lines
            ],
            "customer_details": customer_details,
            "callbacks": {
                "finish": f"{self.base_url}/payment/success?order_id={transaction_id}",
                "error": f"{self.base_url}/payment/error?order_id={transaction_id}",
                "pending": f"{self.base_url}/payment/pending?order_id={transaction_id}",
            },
        }

    def create_order(
        self,
        external_id: str,
        items: List[CheckoutItemIn],
        total: Decimal | None,
        customer: CustomerDetailsIn,
    ) -> Dict[str, Any]:
        """
        Use Case: checkout.

        1. Resolve usera
        2. Ceny z menu, total liczony po stronie serwera
        3. Order + order items + payment w jednej transakcji
        4. Token z Midtrans Snap
        Blad w 3-4 => rollback, nic nie zostaje w bazie.
        """
        user = self.user_repo.get_by_external_id(external_id)
        if not user:
            raise NotFound("User not found in database")

        lines = self._price_lines(items)
        server_total = sum((line["price"] * line["quantity"] for line in lines), Decimal("0.00"))

        if total is not None and Decimal(total) != server_total:
            logger.warning(
                f"Client total {total} differs from server total {server_total} for user {user.id}, "
                f"using server total"
            )

        try:
            order = self.repo.add_order(
                OrderModel(user_id=user.id, status=PENDING, total=server_total)
            )
            for line in lines:
                self.repo.add_order_item(
                    OrderItemModel(
                        order_id=order.id,
                        menu_item_id=line["menu_item_id"],
                        quantity=line["quantity"],
                        price_each=line["price"],
                    )
                )

            transaction_id = make_transaction_id(order.id)
            parameters = self.build_transaction_request(
                transaction_id,
                server_total,
                lines,
                self._customer_details(user, customer),
            )

            transaction = self.gateway.create_transaction(parameters, notification_url=self.notification_url)

            self.payment_repo.add_payment(
                PaymentModel(
                    order_id=order.id,
                    transaction_id=transaction_id,
                    payment_type="pending",
                    gross_amount=server_total,
                    status_code="201",
                    transaction_time=datetime.now(timezone.utc),
                )
            )
            self.repo.commit()
        except ServiceError:
            self.repo.rollback()
            raise
        except Exception as e:
            self.repo.rollback()
            logger.exception(f"Checkout failed for user {user.id}")
            raise InternalError("Internal server error") from e

        logger.info(f"Order {order.id} created with transaction {transaction_id}, total {server_total}")

        return {
            "success": True,
            "token": transaction["token"],
            "redirect_url": transaction.get("redirect_url"),
            "order_id": order.id,
            "transaction_id": transaction_id,
        }

    def _order_to_dict(self, order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "status": order.status,
            "total": order.total,
            "created_at": order.created_at,
            "transaction_id": order.payment.transaction_id if order.payment else None,
            "items": [
                {
                    "menu_item_id": i.menu_item_id,
                    "name": i.menu_item.name if i.menu_item else None,
                    "quantity": i.quantity,
                    "price_each": i.price_each,
                }
                for i in order.items
            ],
        }

    def list_orders(self, external_id: str) -> List[Dict[str, Any]]:
        user = self.user_repo.get_by_external_id(external_id)
        if not user:
            raise NotFound("User not found")
        return [self._order_to_dict(o) for o in self.repo.list_orders_for_user(user.id)]

    def get_order(self, order_id: int, external_id: str) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamowienia (Query).
        """
        user = self.user_repo.get_by_external_id(external_id)
        if not user:
            raise NotFound("User not found")

        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Order not found")

        if order.user_id != user.id:
            raise Forbidden("Access to order denied")

        return self._order_to_dict(order)
