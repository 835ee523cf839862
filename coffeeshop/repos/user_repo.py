# coffeeshop/repos/user_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from coffeeshop.data.models.user import UserModel
from coffeeshop.data.models.cart import CartModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_external_id(self, external_id: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.external_id == external_id)
        ).scalar_one_or_none()

    def get_cart(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def add(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
