"""File-backed registry of Web Push subscriptions.

The registry is an in-memory ``endpoint -> StoredSubscription`` map.  Every
mutation schedules a debounced write of the whole map to a JSON file:

    1. serialise all records (pretty JSON array, camelCase keys)
    2. write to ``<file>.<uuid>.tmp`` in the same directory
    3. ``os.replace`` the temp file over the destination

A crash mid-write therefore leaves the previously committed file intact.
Write failures are logged and never raised to the mutating caller; the next
mutation rewrites the full current state.

Mutations run synchronously on the event loop thread, only the file write is
offloaded to a worker thread.  Writes are chained so at most one is in flight.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import math
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any
from uuid import uuid4

from app.core.notification.normalize import normalize_metadata
from app.schemas.push import (
    NormalizedPushSubscription,
    NormalizedSubscriptionMetadata,
    PushSubscriptionKeys,
    StoredSubscription,
)

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 250


def _now_ms() -> int:
    return int(time.time() * 1000)


class SubscriptionStore:
    """Debounced, crash-safe subscription registry keyed by endpoint."""

    def __init__(
        self,
        file_path: str | os.PathLike[str],
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.file_path = Path(file_path).resolve()
        self.debounce_ms = max(0, debounce_ms)
        self._clock = clock
        self._store: dict[str, StoredSubscription] = {}
        self._persist_handle: asyncio.TimerHandle | None = None
        self._persist_task: asyncio.Task[None] | None = None
        self._load_from_disk()

    def __len__(self) -> int:
        return len(self._store)

    # --- Queries ----------------------------------------------------------------

    def list(self) -> list[StoredSubscription]:
        """Snapshot of all records; mutating them never affects the registry."""
        return [record.model_copy(deep=True) for record in self._store.values()]

    def get(self, endpoint: str) -> StoredSubscription | None:
        record = self._store.get(endpoint)
        return record.model_copy(deep=True) if record else None

    # --- Mutations --------------------------------------------------------------

    def upsert(
        self,
        subscription: NormalizedPushSubscription,
        metadata: NormalizedSubscriptionMetadata | None = None,
    ) -> StoredSubscription:
        """Insert or update by endpoint, keeping ``created_at`` and ``last_notified_at``."""
        now = self._clock()
        existing = self._store.get(subscription.endpoint)

        record = StoredSubscription(
            endpoint=subscription.endpoint,
            expiration_time=subscription.expiration_time,
            keys=subscription.keys.model_copy(),
            metadata=normalize_metadata(metadata),
            created_at=existing.created_at if existing else now,
            updated_at=now,
            last_notified_at=existing.last_notified_at if existing else None,
        )
        self._store[record.endpoint] = record
        self._schedule_persist()
        return record.model_copy(deep=True)

    def remove(self, endpoint: str) -> bool:
        existed = self._store.pop(endpoint, None) is not None
        if existed:
            self._schedule_persist()
        return existed

    def mark_delivered(self, endpoint: str, timestamp: int | None = None) -> StoredSubscription | None:
        current = self._store.get(endpoint)
        if current is None:
            return None

        delivered_at = self._clock() if timestamp is None else timestamp
        updated = current.model_copy(update={"updated_at": delivered_at, "last_notified_at": delivered_at})
        self._store[endpoint] = updated
        self._schedule_persist()
        return updated.model_copy(deep=True)

    async def flush(self) -> None:
        """Run any debounced write now and wait until all writes have settled."""
        if self._persist_handle is not None:
            self._persist_handle.cancel()
            self._persist_handle = None
            self._start_persist()

        while self._persist_task is not None:
            await self._persist_task

    # --- Persistence ------------------------------------------------------------

    def _serialize(self) -> str:
        return json.dumps([record.to_json_dict() for record in self._store.values()], ensure_ascii=False, indent=2)

    def _schedule_persist(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if self.debounce_ms == 0 or loop is None:
            self._write_snapshot(self._serialize())
            return

        if self._persist_handle is not None:
            self._persist_handle.cancel()
        self._persist_handle = loop.call_later(self.debounce_ms / 1000, self._on_debounce_elapsed)

    def _on_debounce_elapsed(self) -> None:
        self._persist_handle = None
        self._start_persist()

    def _start_persist(self) -> None:
        self._persist_task = asyncio.ensure_future(self._persist(self._persist_task))

    async def _persist(self, previous: asyncio.Task[None] | None) -> None:
        try:
            if previous is not None and not previous.done():
                await previous
            # Serialised here, not at scheduling time, so the write carries the latest state.
            data = self._serialize()
            await asyncio.to_thread(self._write_snapshot, data)
        finally:
            if self._persist_task is asyncio.current_task():
                self._persist_task = None

    def _write_snapshot(self, data: str) -> None:
        tmp_path = self.file_path.with_name(f"{self.file_path.name}.{uuid4().hex}.tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(data, encoding="utf-8")
            try:
                os.replace(tmp_path, self.file_path)
            except (FileExistsError, PermissionError):
                # Windows refuses to replace a destination that is open elsewhere.
                self.file_path.unlink(missing_ok=True)
                os.replace(tmp_path, self.file_path)
            except FileNotFoundError:
                # Directory vanished between mkdir and rename.
                self.file_path.parent.mkdir(parents=True, exist_ok=True)
                self.file_path.write_text(data, encoding="utf-8")
                tmp_path.unlink(missing_ok=True)
        except Exception:
            logger.exception("Failed to persist subscription store to %s", self.file_path)
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)

    def _load_from_disk(self) -> None:
        if not self.file_path.exists():
            return

        try:
            raw = self.file_path.read_text(encoding="utf-8")
            if not raw.strip():
                return
            parsed = json.loads(raw)
        except (OSError, ValueError):
            logger.exception("Failed to load subscription store from %s", self.file_path)
            return

        if not isinstance(parsed, list):
            logger.warning("Subscription store file %s contained invalid data, ignoring", self.file_path)
            return

        now = self._clock()
        for index, item in enumerate(parsed):
            try:
                record = _coerce_record(item, now)
            except (ValueError, TypeError, OverflowError) as e:
                # pydantic.ValidationError is a ValueError
                logger.warning("Skipping unreadable subscription entry #%d in %s: %s", index, self.file_path, e)
                continue
            if record is not None:
                self._store[record.endpoint] = record

        logger.info("Loaded %d push subscription(s) from %s", len(self._store), self.file_path)


def _coerce_record(item: Any, now: int) -> StoredSubscription | None:
    """Build a record from one persisted entry, defaulting anything malformed."""
    if not isinstance(item, dict):
        return None
    endpoint = item.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint:
        return None

    def _int_or(value: Any, default: int | None) -> int | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return default
        return int(value)

    keys = item.get("keys") if isinstance(item.get("keys"), dict) else {}
    metadata = item.get("metadata") if isinstance(item.get("metadata"), dict) else None

    return StoredSubscription(
        endpoint=endpoint,
        expiration_time=_int_or(item.get("expirationTime"), None),
        keys=PushSubscriptionKeys(
            p256dh=keys.get("p256dh") if isinstance(keys.get("p256dh"), str) and keys.get("p256dh") else None,
            auth=keys.get("auth") if isinstance(keys.get("auth"), str) and keys.get("auth") else None,
        ),
        metadata=normalize_metadata(metadata),
        created_at=_int_or(item.get("createdAt"), now),
        updated_at=_int_or(item.get("updatedAt"), now),
        last_notified_at=_int_or(item.get("lastNotifiedAt"), None),
    )
