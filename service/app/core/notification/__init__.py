from .bootstrap import get_push_service
from .exceptions import PushNotConfiguredError, PushNotificationError
from .formatter import format_gold_price_notification
from .normalize import get_preferred_currency, normalize_metadata, normalize_subscription
from .service import NotificationStats, PushNotificationService
from .store import SubscriptionStore
from .vapid import VapidCredentials, send_push

__all__ = [
    "NotificationStats",
    "PushNotConfiguredError",
    "PushNotificationError",
    "PushNotificationService",
    "SubscriptionStore",
    "VapidCredentials",
    "format_gold_price_notification",
    "get_preferred_currency",
    "get_push_service",
    "normalize_metadata",
    "normalize_subscription",
    "send_push",
]
