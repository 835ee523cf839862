from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from coffeeshop.data.models.cart_item import CartItemModel
from coffeeshop.domain.errors import BadRequest, NotFound
from coffeeshop.repos.cart_repo import CartRepo
from coffeeshop.repos.menu_repo import MenuRepo
from coffeeshop.repos.user_repo import UserRepo
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Koszyk usera: mapa menu_item -> quantity
    commands (add, set, remove, clear) modyfikuja stan
    query (get) tylko odczyt
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.menu_repo = MenuRepo(db)
        self.user_repo = UserRepo(db)

    def _resolve_cart(self, external_id: str):
        user = self.user_repo.get_by_external_id(external_id)
        if not user:
            raise NotFound("User not found in database")

        cart = self.repo.get_cart_by_user(user.id)
        if not cart:
            raise NotFound("Cart not found")
        return cart

    def _to_dict(self, cart) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        lines = [
            {
                "menu_item_id": i.menu_item_id,
                "name": i.menu_item.name,
                "price": i.menu_item.price,
                "quantity": i.quantity,
                "subtotal": i.menu_item.price * i.quantity,
            }
            for i in items
        ]
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": lines,
            "total": sum((line["subtotal"] for line in lines), Decimal("0.00")),
        }

    #query - odczyt
    def get_cart(self, external_id: str) -> Dict[str, Any]:
        return self._to_dict(self._resolve_cart(external_id))

    #commands
    def add_item(self, external_id: str, menu_item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise BadRequest("Quantity must be greater than 0")

        cart = self._resolve_cart(external_id)

        if not self.menu_repo.get_menu_item(menu_item_id):
            raise BadRequest(f"Unknown menu item {menu_item_id}")

        existing_item = self.repo.get_cart_item(cart.id, menu_item_id)

        # unikalne (cart_id, menu_item_id), ponowne dodanie zwieksza ilosc
        if existing_item:
            logger.info(
                f"Menu item {menu_item_id} already in cart {cart.id}, "
                f"quantity {existing_item.quantity} -> {existing_item.quantity + quantity}"
            )
            existing_item.quantity += quantity
        else:
            logger.info(f"Adding menu item {menu_item_id} to cart {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(cart_id=cart.id, menu_item_id=menu_item_id, quantity=quantity)
            )

        self.repo.commit()
        return self._to_dict(cart)

    def set_quantity(self, external_id: str, menu_item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise BadRequest("Quantity must be greater than 0")

        cart = self._resolve_cart(external_id)
        item = self.repo.get_cart_item(cart.id, menu_item_id)
        if not item:
            raise NotFound("Item not in cart")

        item.quantity = quantity
        self.repo.commit()
        return self._to_dict(cart)

    def remove_item(self, external_id: str, menu_item_id: int) -> Dict[str, Any]:
        cart = self._resolve_cart(external_id)

        logger.info(f"Removing menu item {menu_item_id} from cart {cart.id}")
        self.repo.delete_cart_item(cart.id, menu_item_id)
        self.repo.commit()
        return self._to_dict(cart)

    def clear_cart(self, external_id: str) -> Dict[str, Any]:
        cart = self._resolve_cart(external_id)

        deleted = self.repo.clear_cart(cart.id)
        self.repo.commit()
        logger.info(f"Cleared {deleted} items from cart {cart.id}")
        return self._to_dict(cart)
