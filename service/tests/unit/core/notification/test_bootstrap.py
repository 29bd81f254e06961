from collections.abc import Iterator
from pathlib import Path

import pytest

from app.configs import configs
from app.core.notification.bootstrap import get_push_service, reset_push_service


@pytest.fixture
def fresh_service(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    path = tmp_path / "registry" / "subs.json"
    monkeypatch.setattr(configs.Push, "SubscriptionsPath", str(path))
    monkeypatch.setattr(configs.Push, "IntervalSeconds", 30.0)
    reset_push_service()
    yield path
    reset_push_service()


def test_service_is_a_shared_singleton(fresh_service: Path) -> None:
    service = get_push_service()

    assert get_push_service() is service
    assert service.store.file_path == fresh_service.resolve()
    assert service.interval_seconds == 30.0
    assert service.ttl_seconds == 60


def test_reset_builds_a_new_instance(fresh_service: Path) -> None:
    first = get_push_service()
    reset_push_service()

    assert get_push_service() is not first
