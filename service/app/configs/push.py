"""Web Push configuration.

Two groups of settings live here:

- ``PushConfig`` holds the static knobs of the delivery service (polling
  interval, registry location, debounce window).  It is read once at startup.
- ``VapidConfig`` holds the VAPID credentials.  It is re-instantiated on every
  config-sensitive call so keys can be rotated without restarting the process.
  Each field accepts the legacy variable names as fallbacks, first match wins.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_VAPID_SUBJECT = "mailto:notifications@gold-tracker.app"


class PushConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PUSH_", case_sensitive=False, extra="ignore")

    IntervalSeconds: float = Field(default=60.0, gt=0, description="Delay between two delivery cycles")
    DebounceMs: int = Field(default=250, ge=0, description="Debounce window for registry writes (0 = write inline)")
    SubscriptionsPath: str = Field(
        default="storage/push-subscriptions.json",
        validation_alias=AliasChoices("PUSH_SUBSCRIPTIONS_PATH", "SubscriptionsPath"),
        description="Subscription registry file, relative paths resolve against the working directory",
    )
    DefaultSubject: str = Field(default=DEFAULT_VAPID_SUBJECT, description="VAPID subject used when none is set")
    RefreshIntervalHours: int = Field(default=12, description="How long a client may wait before re-subscribing")

    def resolve_subscriptions_path(self) -> Path:
        configured = self.SubscriptionsPath.strip()
        if not configured:
            return (Path.cwd() / "storage" / "push-subscriptions.json").resolve()
        path = Path(configured)
        return path if path.is_absolute() else (Path.cwd() / path).resolve()


class VapidConfig(BaseSettings):
    """VAPID key pair and contact subject.

    Environment variables (first non-empty wins):
        PublicKey: VAPID_PUBLIC_KEY, WEB_PUSH_PUBLIC_KEY, VITE_VAPID_PUBLIC_KEY
        PrivateKey: VAPID_PRIVATE_KEY, WEB_PUSH_PRIVATE_KEY
        Subject: VAPID_SUBJECT, WEB_PUSH_CONTACT
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    PublicKey: str = Field(
        default="",
        validation_alias=AliasChoices("VAPID_PUBLIC_KEY", "WEB_PUSH_PUBLIC_KEY", "VITE_VAPID_PUBLIC_KEY"),
        description="VAPID public key (URL-safe base64, 65-byte uncompressed EC point)",
    )
    PrivateKey: str = Field(
        default="",
        validation_alias=AliasChoices("VAPID_PRIVATE_KEY", "WEB_PUSH_PRIVATE_KEY"),
        description="VAPID private key (URL-safe base64, 32-byte raw scalar)",
    )
    Subject: str = Field(
        default="",
        validation_alias=AliasChoices("VAPID_SUBJECT", "WEB_PUSH_CONTACT"),
        description="VAPID contact (mailto: or https: URI)",
    )

    @field_validator("PublicKey", "PrivateKey", "Subject", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value
