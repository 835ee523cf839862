from sqlalchemy import Column, Integer, String, Text, Numeric

from coffeeshop.data.database import Base


class MenuItemModel(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    image_url = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(12, 2), nullable=False)
