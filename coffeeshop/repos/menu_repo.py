# coffeeshop/repos/menu_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from coffeeshop.data.models.menu_item import MenuItemModel


class MenuRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_menu_item(self, menu_item_id: int) -> MenuItemModel | None:
        return self.db.get(MenuItemModel, menu_item_id)

    def get_menu_items(self, ids) -> dict[int, MenuItemModel]:
        ids = set(ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(MenuItemModel).where(MenuItemModel.id.in_(ids))
        ).scalars().all()
        return {row.id: row for row in rows}
