from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coffeeshop.api.deps import (
    get_auth_client,
    get_identity,
    require_identity,
    error_response,
    internal_error_response,
)
from coffeeshop.data.database import get_db
from coffeeshop.domain.errors import ServiceError
from coffeeshop.domain.schemas import UserSyncOut
from coffeeshop.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/sync", response_model=UserSyncOut)
def sync_user(
    identity: str | None = Depends(get_identity),
    auth_client=Depends(get_auth_client),
    db: Session = Depends(get_db),
):
    service = UserService(db, auth_client=auth_client)
    try:
        return service.sync_user(require_identity(identity))
    except ServiceError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("user sync")
