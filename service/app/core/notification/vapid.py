"""VAPID credentials and Web Push sending via pywebpush."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pywebpush import webpush

from app.configs import PushConfig, VapidConfig, configs

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VapidCredentials:
    public_key: str | None
    private_key: str | None
    subject: str

    @property
    def configured(self) -> bool:
        return bool(self.public_key and self.private_key)

    @property
    def claims(self) -> dict[str, str]:
        return {"sub": self.subject}


def load_vapid_credentials(push_config: PushConfig | None = None) -> VapidCredentials:
    """Read the VAPID key pair from the environment (and ``.env``) right now."""
    fallback_subject = (push_config or configs.Push).DefaultSubject
    vapid = VapidConfig()
    return VapidCredentials(
        public_key=vapid.PublicKey or None,
        private_key=vapid.PrivateKey or None,
        subject=vapid.Subject or fallback_subject,
    )


def send_push(
    subscription_info: dict[str, Any],
    payload: str,
    credentials: VapidCredentials,
    *,
    ttl: int,
    urgency: str = "high",
    topic: str | None = None,
) -> None:
    """Send a single Web Push message.

    Raises :class:`pywebpush.WebPushException` on failure; its ``response``
    carries the push service status code (404/410 mean the subscription is gone).
    """
    headers = {"Urgency": urgency}
    if topic:
        headers["Topic"] = topic

    webpush(
        subscription_info=subscription_info,
        data=payload,
        vapid_private_key=credentials.private_key,
        vapid_claims=dict(credentials.claims),
        ttl=ttl,
        headers=headers,
    )
