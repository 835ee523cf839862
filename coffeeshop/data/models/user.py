from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from coffeeshop.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    external_id = Column(String, nullable=False, unique=True, index=True)  # id z auth providera
    email = Column(String, nullable=False, default="")
    name = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="user", uselist=False)
    orders = relationship("OrderModel", back_populates="user")
