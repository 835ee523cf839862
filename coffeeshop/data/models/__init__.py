#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from coffeeshop.data.models.user import UserModel
from coffeeshop.data.models.cart import CartModel
from coffeeshop.data.models.cart_item import CartItemModel
from coffeeshop.data.models.menu_item import MenuItemModel
from coffeeshop.data.models.order import OrderModel, OrderItemModel
from coffeeshop.data.models.payment import PaymentModel

__all__ = [
    "UserModel",
    "CartModel",
    "CartItemModel",
    "MenuItemModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentModel",
]
