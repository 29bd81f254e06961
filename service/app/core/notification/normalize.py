"""Canonicalisation of subscription payloads before they reach the registry.

These helpers assume the payload already passed validation (see
``app.schemas.push``); they only trim, drop empties and pick the preferred
currency.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from app.schemas.push import (
    DEFAULT_PREFERRED_CURRENCY,
    NormalizedPushSubscription,
    NormalizedSubscriptionMetadata,
    PushSubscriptionKeys,
    PushSubscriptionPayload,
)


def _as_dict(value: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    return dict(value)


def _clean_str(value: Any) -> str | None:
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed:
            return trimmed
    return None


def normalize_subscription(payload: PushSubscriptionPayload | Mapping[str, Any]) -> NormalizedPushSubscription:
    raw = _as_dict(payload)
    keys = raw.get("keys") or {}
    if isinstance(keys, BaseModel):
        keys = keys.model_dump(exclude_none=True)

    expiration = raw.get("expiration_time", raw.get("expirationTime"))
    if isinstance(expiration, bool) or not isinstance(expiration, (int, float)) or not math.isfinite(expiration):
        expiration = None

    return NormalizedPushSubscription(
        endpoint=str(raw["endpoint"]).strip(),
        expiration_time=int(expiration) if expiration is not None else None,
        keys=PushSubscriptionKeys(p256dh=_clean_str(keys.get("p256dh")), auth=_clean_str(keys.get("auth"))),
    )


def normalize_metadata(
    metadata: BaseModel | Mapping[str, Any] | None,
) -> NormalizedSubscriptionMetadata | None:
    """Trim every string field and resolve ``preferred_currency``.

    Returns ``None`` when nothing survives, so "no metadata" is always absence
    rather than an empty object.
    """
    if not metadata:
        return None

    raw = _as_dict(metadata)
    cleaned: dict[str, str] = {}
    for name, field in NormalizedSubscriptionMetadata.model_fields.items():
        value = _clean_str(raw.get(name, raw.get(field.alias or name)))
        if value is not None:
            cleaned[name] = value

    preferred = cleaned.get("preferred_currency") or cleaned.get("currency")
    if preferred:
        cleaned["preferred_currency"] = preferred.upper()
    else:
        cleaned.pop("preferred_currency", None)

    if not cleaned:
        return None
    return NormalizedSubscriptionMetadata(**cleaned)


def get_preferred_currency(
    metadata: NormalizedSubscriptionMetadata | Mapping[str, Any] | None,
    fallback: str = DEFAULT_PREFERRED_CURRENCY,
) -> str:
    if metadata is None:
        return fallback
    if isinstance(metadata, Mapping):
        metadata = NormalizedSubscriptionMetadata.model_validate(metadata)
    candidate = metadata.preferred_currency or metadata.currency
    if isinstance(candidate, str) and candidate.strip():
        return candidate.strip().upper()
    return fallback
