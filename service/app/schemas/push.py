"""Web Push subscription shapes.

Two layers live here:

- ``*Payload`` models validate what a browser sends (``PushSubscription.toJSON()``
  plus optional client metadata).  They reject an empty endpoint and
  out-of-range currency codes.
- ``Normalized*`` / ``StoredSubscription`` are the canonical shapes kept in the
  subscription registry.  Field names are snake_case in Python and camelCase on
  the wire / on disk.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

DEFAULT_PREFERRED_CURRENCY = "USD"

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
CurrencyCode = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=6)]
TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys, omitting unset optional values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Validation layer -------------------------------------------------------


class PushSubscriptionKeysPayload(CamelModel):
    # Explicit alias: to_camel would produce "p256Dh".
    p256dh: NonEmptyStr | None = Field(default=None, alias="p256dh")
    auth: NonEmptyStr | None = None


class PushSubscriptionPayload(CamelModel):
    """Browser ``PushSubscription`` as sent by the client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    endpoint: NonEmptyStr
    expiration_time: int | None = None
    keys: PushSubscriptionKeysPayload | None = None


class SubscriptionMetadataPayload(CamelModel):
    """Optional client context attached to a subscription."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    currency: CurrencyCode | None = None
    preferred_currency: CurrencyCode | None = None
    user_agent: TrimmedStr | None = None
    language: TrimmedStr | None = None
    platform: TrimmedStr | None = None
    source: TrimmedStr | None = None
    timezone: TrimmedStr | None = None


# --- Registry shapes --------------------------------------------------------


class PushSubscriptionKeys(CamelModel):
    # Explicit alias: to_camel would produce "p256Dh".
    p256dh: str | None = Field(default=None, alias="p256dh")
    auth: str | None = None


class NormalizedPushSubscription(CamelModel):
    endpoint: str
    expiration_time: int | None = None
    keys: PushSubscriptionKeys = Field(default_factory=PushSubscriptionKeys)


class NormalizedSubscriptionMetadata(CamelModel):
    currency: str | None = None
    preferred_currency: str | None = None
    user_agent: str | None = None
    language: str | None = None
    platform: str | None = None
    source: str | None = None
    timezone: str | None = None


class StoredSubscription(NormalizedPushSubscription):
    """A registry entry.  ``endpoint`` is the identity key."""

    metadata: NormalizedSubscriptionMetadata | None = None
    created_at: int = Field(description="Epoch ms of first registration, never changes")
    updated_at: int = Field(description="Epoch ms of the last upsert or delivery")
    last_notified_at: int | None = Field(default=None, description="Epoch ms of the last successful delivery")
