from sqlalchemy.orm import Session

from coffeeshop.data.models.user import UserModel
from coffeeshop.data.models.cart import CartModel
from coffeeshop.domain.schemas import UserRead
from coffeeshop.repos.user_repo import UserRepo
from coffeeshop.services.auth_client import AuthProviderClient
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session, auth_client: AuthProviderClient):
        self.repo = UserRepo(db)
        self.auth_client = auth_client

    def sync_user(self, external_id: str) -> dict:
        """
        Lokalny rekord usera + koszyk dla tozsamosci z auth providera.
        Koszyk tworzony leniwie, tez dla istniejacych userow bez koszyka.
        """
        existing = self.repo.get_by_external_id(external_id)

        if existing:
            if not self.repo.get_cart(existing.id):
                self.repo.add(CartModel(user_id=existing.id))
                self.repo.commit()
                logger.info(f"Created missing cart for user {existing.id}")
            return {"message": "User already exists", "user": UserRead.model_validate(existing)}

        profile = self.auth_client.fetch_profile(external_id)
        name = f"{profile.get('first_name') or ''} {profile.get('last_name') or ''}".strip()

        try:
            user = self.repo.add(
                UserModel(
                    external_id=external_id,
                    email=profile.get("email") or "",
                    name=name or None,
                    image_url=profile.get("image_url"),
                )
            )
            self.repo.add(CartModel(user_id=user.id))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Created user {user.id} with cart for identity {external_id}")
        return {"message": "User created successfully", "user": UserRead.model_validate(user)}
