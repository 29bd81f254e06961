class PushNotificationError(Exception):
    """Base class for push delivery service errors."""


class PushNotConfiguredError(PushNotificationError):
    """VAPID credentials are missing, so subscriptions cannot be accepted."""

    def __init__(self, message: str = "Push notifications are not configured"):
        super().__init__(message)
