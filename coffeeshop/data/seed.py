# coffeeshop/data/seed.py
from decimal import Decimal

from coffeeshop.data.database import SessionLocal
from coffeeshop.data.models import MenuItemModel

MENU = [
    {"name": "Espresso", "category": "coffee", "price": Decimal("18000"), "stock": 100},
    {"name": "Cappuccino", "category": "coffee", "price": Decimal("28000"), "stock": 100},
    {"name": "Kopi Susu Gula Aren", "category": "coffee", "price": Decimal("25000"), "stock": 100},
    {"name": "Matcha Latte", "category": "non-coffee", "price": Decimal("30000"), "stock": 50},
    {"name": "Croissant", "category": "pastry", "price": Decimal("22000"), "stock": 30},
]


def seed(db=None) -> int:
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(MenuItemModel).first():
            return 0
        for item in MENU:
            db.add(MenuItemModel(image_url="", description=None, **item))
        db.commit()
        return len(MENU)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()
