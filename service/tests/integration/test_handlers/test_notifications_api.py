import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient

from app.core.notification.service import PushNotificationService
from tests.factories.push import MISSING_CREDENTIALS

SUBSCRIPTION = {
    "endpoint": "https://fcm.googleapis.com/fcm/send/abc123",
    "expirationTime": None,
    "keys": {"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA", "auth": "tBHItJI5svbpez7KI4CCXg"},
}


@pytest.mark.integration
class TestNotificationsAPI:
    def test_public_key(self, test_client: TestClient) -> None:
        response = test_client.get("/api/v1/notifications/public-key")

        assert response.status_code == 200
        assert response.json() == {"enabled": True, "publicKey": "BPublicKeyForTests", "refreshIntervalSeconds": 60}

    def test_public_key_when_disabled(self, test_client: TestClient, push_service: PushNotificationService) -> None:
        push_service._credentials_loader = lambda: MISSING_CREDENTIALS

        response = test_client.get("/api/v1/notifications/public-key")

        assert response.status_code == 200
        assert response.json()["enabled"] is False
        assert response.json()["publicKey"] is None

    def test_subscribe_then_status(self, test_client: TestClient, store_path: Path) -> None:
        response = test_client.post(
            "/api/v1/notifications/subscribe",
            json={"subscription": SUBSCRIPTION, "metadata": {"preferredCurrency": "myr", "language": "ms-MY"}},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["endpoint"] == SUBSCRIPTION["endpoint"]
        assert body["preferredCurrency"] == "MYR"
        assert "nextRefreshAt" in body

        persisted = json.loads(store_path.read_text(encoding="utf-8"))
        assert persisted[0]["metadata"] == {"preferredCurrency": "MYR", "language": "ms-MY"}
        assert persisted[0]["keys"] == SUBSCRIPTION["keys"]

        status = test_client.get("/api/v1/notifications/status")
        assert status.json() == {"enabled": True, "total": 1, "currencies": ["MYR"]}

    def test_subscribe_without_metadata_defaults_to_usd(self, test_client: TestClient) -> None:
        response = test_client.post("/api/v1/notifications/subscribe", json={"subscription": SUBSCRIPTION})

        assert response.status_code == 200
        assert response.json()["preferredCurrency"] == "USD"

    def test_subscribe_when_not_configured(
        self, test_client: TestClient, push_service: PushNotificationService
    ) -> None:
        push_service._credentials_loader = lambda: MISSING_CREDENTIALS

        response = test_client.post("/api/v1/notifications/subscribe", json={"subscription": SUBSCRIPTION})

        assert response.status_code == 503
        assert response.json()["detail"] == "Push notifications are not configured"
        assert push_service.store.list() == []

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"subscription": {"endpoint": "   "}},
            {"subscription": {"keys": {}}},
            {"subscription": SUBSCRIPTION, "metadata": {"currency": "X"}},
        ],
    )
    def test_subscribe_rejects_invalid_payload(self, test_client: TestClient, payload: dict) -> None:
        response = test_client.post("/api/v1/notifications/subscribe", json=payload)
        assert response.status_code == 422

    def test_unsubscribe(self, test_client: TestClient) -> None:
        test_client.post("/api/v1/notifications/subscribe", json={"subscription": SUBSCRIPTION})

        first = test_client.post("/api/v1/notifications/unsubscribe", json={"endpoint": SUBSCRIPTION["endpoint"]})
        second = test_client.post("/api/v1/notifications/unsubscribe", json={"endpoint": SUBSCRIPTION["endpoint"]})

        assert first.json() == {"success": True, "removed": True}
        assert second.json() == {"success": True, "removed": False}

    def test_unsubscribe_requires_endpoint(self, test_client: TestClient) -> None:
        response = test_client.post("/api/v1/notifications/unsubscribe", json={"endpoint": ""})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_subscribe_async(self, async_client: AsyncClient, push_service: PushNotificationService) -> None:
        response = await async_client.post("/api/v1/notifications/subscribe", json={"subscription": SUBSCRIPTION})

        assert response.status_code == 200
        stats = await push_service.notify_subscribers()
        assert stats.delivered == 1
