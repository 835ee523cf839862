# coffeeshop/api/__init__.py
from fastapi import FastAPI

from coffeeshop.api.routers import carts, health, orders, payments, payment_testing, users
from coffeeshop.services.auth_client import AuthProviderClient
from coffeeshop.services.gateway_client import MidtransGateway
from coffeeshop.services.lock_service import LockService
from coffeeshop.services.notification_service import NotificationService
from coffeeshop.services.notification_trigger import NotificationTrigger
from coffeeshop.utils.settings import (
    ENABLE_TEST_NOTIFICATIONS,
    MIDTRANS_IS_PRODUCTION,
    PUBLIC_BASE_URL,
)
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)


def create_app(
    gateway=None,
    lock_service=None,
    notifier=None,
    auth_client=None,
    trigger=None,
    enable_test_notifications: bool | None = None,
    is_production: bool | None = None,
    public_base_url: str | None = None,
) -> FastAPI:
    app = FastAPI(title="Coffee Shop Service", version="1.0.0")

    # klienci zewnetrzni raz na proces, wstrzykiwani przez app.state
    app.state.gateway = gateway or MidtransGateway()
    app.state.lock_service = lock_service or LockService()
    app.state.notifier = notifier or NotificationService()
    app.state.auth_client = auth_client or AuthProviderClient()
    app.state.trigger = trigger or NotificationTrigger()
    app.state.public_base_url = PUBLIC_BASE_URL if public_base_url is None else public_base_url

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(payments.router)

    if enable_test_notifications is None:
        enable_test_notifications = ENABLE_TEST_NOTIFICATIONS
    if is_production is None:
        is_production = MIDTRANS_IS_PRODUCTION

    if enable_test_notifications and not is_production:
        logger.warning("Test notification endpoint enabled, do not use in production")
        app.include_router(payment_testing.router)

    return app
