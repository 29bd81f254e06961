"""Web Push notification endpoints."""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from app.configs import configs
from app.core.notification.bootstrap import get_push_service
from app.core.notification.exceptions import PushNotConfiguredError
from app.core.notification.normalize import get_preferred_currency
from app.core.notification.service import PushNotificationService
from app.schemas.push import CamelModel, NonEmptyStr, PushSubscriptionPayload, SubscriptionMetadataPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


# --- Response / Request models -----------------------------------------------


class PublicKeyResponse(CamelModel):
    enabled: bool
    public_key: str | None
    refresh_interval_seconds: int


class StatusResponse(CamelModel):
    enabled: bool
    total: int
    currencies: list[str]


class SubscribeRequest(CamelModel):
    subscription: PushSubscriptionPayload
    metadata: SubscriptionMetadataPayload | None = None


class SubscribeResponse(CamelModel):
    success: bool
    endpoint: str
    preferred_currency: str
    next_refresh_at: datetime


class UnsubscribeRequest(CamelModel):
    endpoint: NonEmptyStr


class UnsubscribeResponse(CamelModel):
    success: bool
    removed: bool


# --- Endpoints ----------------------------------------------------------------


@router.get("/public-key", response_model=PublicKeyResponse)
async def get_public_key(service: PushNotificationService = Depends(get_push_service)) -> PublicKeyResponse:
    """VAPID public key the browser needs for ``pushManager.subscribe``."""
    return PublicKeyResponse(
        enabled=service.is_enabled(),
        public_key=service.get_public_key(),
        refresh_interval_seconds=int(service.interval_seconds),
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(service: PushNotificationService = Depends(get_push_service)) -> StatusResponse:
    return StatusResponse(**service.status())


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    body: SubscribeRequest,
    service: PushNotificationService = Depends(get_push_service),
) -> SubscribeResponse:
    """Register (or refresh) a browser push subscription."""
    try:
        stored = await service.register(body.subscription, body.metadata)
    except PushNotConfiguredError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except Exception:
        logger.exception("Failed to register push subscription")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register push subscription",
        )

    return SubscribeResponse(
        success=True,
        endpoint=stored.endpoint,
        preferred_currency=get_preferred_currency(stored.metadata),
        next_refresh_at=datetime.now(timezone.utc) + timedelta(hours=configs.Push.RefreshIntervalHours),
    )


@router.post("/unsubscribe", response_model=UnsubscribeResponse)
async def unsubscribe(
    body: UnsubscribeRequest,
    service: PushNotificationService = Depends(get_push_service),
) -> UnsubscribeResponse:
    try:
        removed = await service.unregister(body.endpoint)
    except Exception:
        logger.exception("Failed to remove push subscription")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove push subscription",
        )
    return UnsubscribeResponse(success=True, removed=removed)
