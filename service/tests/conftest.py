from collections.abc import Callable
from pathlib import Path

import pytest

from app.core.notification.store import SubscriptionStore

pytest_plugins = ["tests.fixtures.client"]

VAPID_ENV_VARS = (
    "VAPID_PUBLIC_KEY",
    "WEB_PUSH_PUBLIC_KEY",
    "VITE_VAPID_PUBLIC_KEY",
    "VAPID_PRIVATE_KEY",
    "WEB_PUSH_PRIVATE_KEY",
    "VAPID_SUBJECT",
    "WEB_PUSH_CONTACT",
)


@pytest.fixture
def clean_vapid_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every VAPID variable so tests see only what they set."""
    for name in VAPID_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "storage" / "push-subscriptions.json"


@pytest.fixture
def clock() -> Callable[[], int]:
    """Fake epoch-ms clock: 1000, 2000, 3000, ..."""
    ticks = {"now": 0}

    def _tick() -> int:
        ticks["now"] += 1000
        return ticks["now"]

    return _tick


@pytest.fixture
def store(store_path: Path, clock: Callable[[], int]) -> SubscriptionStore:
    return SubscriptionStore(store_path, debounce_ms=0, clock=clock)
