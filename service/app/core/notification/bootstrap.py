"""Process-wide wiring of the subscription store and delivery service.

A single instance of each is created lazily on first use and shared by the
HTTP layer and the application lifespan.
"""

from __future__ import annotations

import logging

from app.configs import configs
from app.core.notification.service import PushNotificationService
from app.core.notification.store import SubscriptionStore

logger = logging.getLogger(__name__)

_service_instance: PushNotificationService | None = None


def create_push_service() -> PushNotificationService:
    push = configs.Push
    path = push.resolve_subscriptions_path()
    logger.info("Push subscription registry at %s", path)
    store = SubscriptionStore(path, debounce_ms=push.DebounceMs)
    return PushNotificationService(store, interval_seconds=push.IntervalSeconds)


def get_push_service() -> PushNotificationService:
    """Return the shared delivery service (FastAPI dependency)."""
    global _service_instance

    if _service_instance is None:
        _service_instance = create_push_service()
    return _service_instance


def reset_push_service() -> None:
    global _service_instance
    _service_instance = None
