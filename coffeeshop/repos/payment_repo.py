# coffeeshop/repos/payment_repo.py
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from coffeeshop.data.models.order import OrderModel
from coffeeshop.data.models.payment import PaymentModel
from coffeeshop.domain.status import PENDING


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_by_transaction_id(self, transaction_id: str, for_update: bool = False) -> PaymentModel | None:
        stmt = select(PaymentModel).where(PaymentModel.transaction_id == transaction_id)
        if for_update:
            # blokada wiersza do konca transakcji (sqlite ignoruje)
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_stale_pending(self, older_than: datetime, limit: int = 100) -> list[PaymentModel]:
        return list(
            self.db.execute(
                select(PaymentModel)
                .join(OrderModel, OrderModel.id == PaymentModel.order_id)
                .where(
                    OrderModel.status == PENDING,
                    PaymentModel.created_at < older_than,
                )
                .order_by(PaymentModel.created_at)
                .limit(limit)
            ).scalars().all()
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
