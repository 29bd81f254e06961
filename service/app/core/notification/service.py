"""Push delivery service: gold price notifications over Web Push.

One cycle:

    registry → group by preferred currency → one quote per currency
             → one payload per currency → concurrent delivery per subscription

Delivery outcomes feed back into the registry: success marks the record
delivered, 404/410 prunes it, anything else is logged and retried next cycle.
Nothing raised inside a cycle escapes :meth:`notify_subscribers`.

Cycles run on a fixed interval.  At most one cycle is active; a trigger that
arrives while one is running sets a single "run again" flag.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

from app.core.gold.client import GoldPriceQuote, fetch_gold_price
from app.core.notification.exceptions import PushNotConfiguredError
from app.core.notification.formatter import format_gold_price_notification
from app.core.notification.normalize import get_preferred_currency, normalize_metadata, normalize_subscription
from app.core.notification.store import SubscriptionStore
from app.core.notification.vapid import VapidCredentials, load_vapid_credentials, send_push
from app.schemas.push import (
    DEFAULT_PREFERRED_CURRENCY,
    PushSubscriptionPayload,
    StoredSubscription,
    SubscriptionMetadataPayload,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0
# Extra seconds the push service should hold an undelivered message beyond one interval.
TTL_GRACE_SECONDS = 30
GONE_STATUS_CODES = frozenset({404, 410})

PriceFeed = Callable[[str], Awaitable[GoldPriceQuote]]
PushSender = Callable[..., None]
CredentialsLoader = Callable[[], VapidCredentials]


class DeliveryOutcome(StrEnum):
    DELIVERED = "delivered"
    PRUNED = "pruned"
    FAILED = "failed"


@dataclass(slots=True)
class NotificationStats:
    total: int = 0
    delivered: int = 0
    failures: int = 0
    pruned: int = 0
    skipped: int = 0

    def record(self, outcome: DeliveryOutcome) -> None:
        if outcome is DeliveryOutcome.DELIVERED:
            self.delivered += 1
        elif outcome is DeliveryOutcome.PRUNED:
            self.pruned += 1
        else:
            self.failures += 1

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def mask_endpoint(endpoint: str) -> str:
    """Shorten a push endpoint so logs never carry the full capability URL."""
    if len(endpoint) <= 20:
        return endpoint
    return f"{endpoint[:25]}…{endpoint[-8:]}"


def to_epoch_milliseconds(value: float) -> int:
    """Quote timestamps arrive in seconds; values above 1e12 are already ms."""
    if not math.isfinite(value):
        return int(time.time() * 1000)
    return round(value) if value > 1_000_000_000_000 else round(value * 1000)


def _status_code(error: BaseException) -> int | None:
    response = getattr(error, "response", None)
    code = getattr(response, "status_code", None) if response is not None else None
    if code is None:
        code = getattr(error, "status_code", None)
    return code if isinstance(code, int) else None


def _subscription_info(subscription: StoredSubscription) -> dict[str, Any]:
    info: dict[str, Any] = {"endpoint": subscription.endpoint, "keys": subscription.keys.model_dump(exclude_none=True)}
    if subscription.expiration_time is not None:
        info["expirationTime"] = subscription.expiration_time
    return info


class PushNotificationService:
    """Registry front door plus the periodic gold price delivery loop."""

    def __init__(
        self,
        store: SubscriptionStore,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        price_feed: PriceFeed = fetch_gold_price,
        sender: PushSender = send_push,
        credentials_loader: CredentialsLoader = load_vapid_credentials,
    ) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self._price_feed = price_feed
        self._sender = sender
        self._credentials_loader = credentials_loader
        self._credentials: VapidCredentials | None = None

        self._stop_event: asyncio.Event | None = None
        self._timer_task: asyncio.Task[None] | None = None
        self._cycle_task: asyncio.Task[None] | None = None
        self._pending_run = False
        self._stopped = False

        self.sync_configuration()

    # --- Configuration ----------------------------------------------------------

    def sync_configuration(self) -> VapidCredentials:
        """Re-read VAPID credentials; only swap them in when something changed."""
        fresh = self._credentials_loader()
        if fresh != self._credentials:
            if self._credentials is not None:
                logger.info("VAPID configuration changed (enabled=%s)", fresh.configured)
            self._credentials = fresh
        return self._credentials

    def is_enabled(self) -> bool:
        return self.sync_configuration().configured

    def get_public_key(self) -> str | None:
        return self.sync_configuration().public_key

    @property
    def ttl_seconds(self) -> int:
        return math.ceil(self.interval_seconds) + TTL_GRACE_SECONDS

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    # --- Registry ---------------------------------------------------------------

    async def register(
        self,
        raw_subscription: PushSubscriptionPayload | Mapping[str, Any],
        metadata: SubscriptionMetadataPayload | Mapping[str, Any] | None = None,
    ) -> StoredSubscription:
        """Validate, normalise and upsert a browser subscription.

        Raises :class:`PushNotConfiguredError` when VAPID keys are missing and
        ``pydantic.ValidationError`` when a mapping fails validation.
        """
        if not self.is_enabled():
            raise PushNotConfiguredError()

        if not isinstance(raw_subscription, PushSubscriptionPayload):
            raw_subscription = PushSubscriptionPayload.model_validate(raw_subscription)
        if metadata is not None and not isinstance(metadata, SubscriptionMetadataPayload):
            metadata = SubscriptionMetadataPayload.model_validate(metadata)

        return self.store.upsert(normalize_subscription(raw_subscription), normalize_metadata(metadata))

    async def unregister(self, endpoint: str) -> bool:
        removed = self.store.remove(endpoint)
        await self.store.flush()
        return removed

    def status(self) -> dict[str, Any]:
        subscriptions = self.store.list()
        currencies = {get_preferred_currency(sub.metadata, DEFAULT_PREFERRED_CURRENCY) for sub in subscriptions}
        return {"enabled": self.is_enabled(), "total": len(subscriptions), "currencies": sorted(currencies)}

    # --- Delivery cycle ---------------------------------------------------------

    async def notify_subscribers(self) -> NotificationStats:
        credentials = self.sync_configuration()
        subscriptions = self.store.list()

        if not credentials.configured or not subscriptions:
            return NotificationStats(total=len(subscriptions), skipped=len(subscriptions))

        grouped: dict[str, list[StoredSubscription]] = {}
        for subscription in subscriptions:
            currency = get_preferred_currency(subscription.metadata, DEFAULT_PREFERRED_CURRENCY)
            grouped.setdefault(currency, []).append(subscription)

        currencies = list(grouped)
        fetched = await asyncio.gather(*(self._fetch_quote(currency) for currency in currencies))
        quotes = dict(zip(currencies, fetched))

        deliveries: list[Awaitable[DeliveryOutcome]] = []
        stats = NotificationStats(total=len(subscriptions))

        for currency, group in grouped.items():
            quote = quotes[currency]
            if quote is None:
                stats.skipped += len(group)
                continue

            payload = format_gold_price_notification(quote)
            delivered_at = to_epoch_milliseconds(quote.timestamp)
            for subscription in group:
                deliveries.append(self._deliver(subscription, payload, currency, delivered_at, credentials))

        for outcome in await asyncio.gather(*deliveries):
            stats.record(outcome)

        return stats

    async def _fetch_quote(self, currency: str) -> GoldPriceQuote | None:
        try:
            return await self._price_feed(currency)
        except Exception:
            logger.exception("Failed to fetch gold price for %s", currency)
            return None

    async def _deliver(
        self,
        subscription: StoredSubscription,
        payload: str,
        currency: str,
        delivered_at: int,
        credentials: VapidCredentials,
    ) -> DeliveryOutcome:
        masked = mask_endpoint(subscription.endpoint)
        try:
            await asyncio.to_thread(
                self._sender,
                _subscription_info(subscription),
                payload,
                credentials,
                ttl=self.ttl_seconds,
                urgency="high",
                topic=f"gold-{currency.lower()}",
            )
        except Exception as e:
            if _status_code(e) in GONE_STATUS_CODES:
                logger.warning("Removing unreachable push subscription: %s", masked)
                self.store.remove(subscription.endpoint)
                return DeliveryOutcome.PRUNED

            logger.error("Failed to deliver notification to %s: %s", masked, e)
            return DeliveryOutcome.FAILED

        self.store.mark_delivered(subscription.endpoint, delivered_at)
        return DeliveryOutcome.DELIVERED

    # --- Scheduling -------------------------------------------------------------

    def trigger_cycle(self) -> None:
        """Run a cycle now, or queue exactly one more if a cycle is in flight.

        No-op after :meth:`stop` until the next :meth:`start`.
        """
        if self._stopped:
            return
        if self._cycle_task is not None:
            self._pending_run = True
            return
        self._cycle_task = asyncio.create_task(self._run_cycle())

    async def _run_cycle(self) -> None:
        try:
            stats = await self.notify_subscribers()
            if stats.delivered or stats.pruned or stats.failures:
                logger.info(
                    "Notifications delivered=%d failures=%d pruned=%d skipped=%d total=%d",
                    stats.delivered,
                    stats.failures,
                    stats.pruned,
                    stats.skipped,
                    stats.total,
                )
        except Exception:
            logger.exception("Failed to notify subscribers")
        finally:
            self._cycle_task = None
            if self._pending_run:
                self._pending_run = False
                self.trigger_cycle()

    async def wait_until_idle(self) -> None:
        """Wait for the running cycle and any cycle queued behind it."""
        while self._cycle_task is not None:
            await asyncio.shield(self._cycle_task)

    async def _run_timer(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass
            self.trigger_cycle()

    def start(self) -> None:
        """Start the interval timer and run one cycle immediately.  Idempotent."""
        if self.running:
            return

        if not self.is_enabled():
            logger.warning("Push notifications are disabled because VAPID credentials are missing")
            return

        self._stopped = False
        self._stop_event = asyncio.Event()
        self._timer_task = asyncio.create_task(self._run_timer(self._stop_event))
        logger.info("Push notification service started (interval=%ss)", self.interval_seconds)
        self.trigger_cycle()

    async def stop(self) -> None:
        """Stop the timer, let an in-flight cycle settle and flush the registry.

        A cycle queued behind the in-flight one is dropped.  Safe to call
        repeatedly.
        """
        self._stopped = True
        self._pending_run = False
        if self._stop_event is not None:
            self._stop_event.set()
        if self._timer_task is not None:
            await self._timer_task
            self._timer_task = None
            logger.info("Push notification service stopped")
        self._stop_event = None
        await self.wait_until_idle()
        await self.store.flush()
