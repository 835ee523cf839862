# coffeeshop/api/deps.py
from datetime import datetime, timezone

from fastapi import Request
from fastapi.responses import JSONResponse

from coffeeshop.domain.errors import ServiceError, Unauthorized
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)

# auth provider przed serwisem przekazuje zweryfikowane id usera
IDENTITY_HEADER = "X-Auth-User-Id"


def get_identity(request: Request) -> str | None:
    value = request.headers.get(IDENTITY_HEADER, "").strip()
    return value or None


def require_identity(identity: str | None) -> str:
    if not identity:
        raise Unauthorized("Unauthorized")
    return identity


# klienci tworzeni raz w create_app(), tu tylko wyciagamy ich ze state
def get_gateway(request: Request):
    return request.app.state.gateway


def get_lock_service(request: Request):
    return request.app.state.lock_service


def get_notifier(request: Request):
    return request.app.state.notifier


def get_auth_client(request: Request):
    return request.app.state.auth_client


def get_trigger(request: Request):
    return request.app.state.trigger


def error_response(exc: ServiceError, **extra) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **extra})


def internal_error_response(context: str, **extra) -> JSONResponse:
    logger.exception(f"Unhandled error in {context}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **extra,
        },
    )
