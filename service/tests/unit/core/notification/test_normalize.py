import pytest
from pydantic import ValidationError

from app.core.notification.normalize import get_preferred_currency, normalize_metadata, normalize_subscription
from app.schemas.push import NormalizedSubscriptionMetadata, PushSubscriptionPayload, SubscriptionMetadataPayload


class TestNormalizeSubscription:
    def test_trims_endpoint_and_keys(self) -> None:
        payload = PushSubscriptionPayload.model_validate(
            {
                "endpoint": "  https://push.example.com/abc  ",
                "expirationTime": 1_700_000_000_000,
                "keys": {"p256dh": " key ", "auth": " secret "},
            }
        )

        normalized = normalize_subscription(payload)

        assert normalized.endpoint == "https://push.example.com/abc"
        assert normalized.expiration_time == 1_700_000_000_000
        assert normalized.keys.p256dh == "key"
        assert normalized.keys.auth == "secret"

    def test_drops_blank_keys_from_mapping(self) -> None:
        normalized = normalize_subscription({"endpoint": "https://push.example.com/x", "keys": {"p256dh": "  "}})

        assert normalized.keys.p256dh is None
        assert normalized.keys.auth is None
        assert normalized.expiration_time is None

    def test_non_finite_expiration_becomes_none(self) -> None:
        normalized = normalize_subscription({"endpoint": "https://push.example.com/x", "expirationTime": float("inf")})
        assert normalized.expiration_time is None

    def test_validation_rejects_blank_endpoint(self) -> None:
        with pytest.raises(ValidationError):
            PushSubscriptionPayload.model_validate({"endpoint": "   "})


class TestNormalizeMetadata:
    def test_preferred_currency_wins_and_is_upper_cased(self) -> None:
        metadata = normalize_metadata({"currency": "usd", "preferredCurrency": "eur", "language": " en-US "})

        assert metadata is not None
        assert metadata.preferred_currency == "EUR"
        assert metadata.currency == "usd"
        assert metadata.language == "en-US"

    def test_currency_promoted_to_preferred(self) -> None:
        metadata = normalize_metadata(SubscriptionMetadataPayload(currency="myr"))

        assert metadata is not None
        assert metadata.preferred_currency == "MYR"

    def test_all_blank_collapses_to_none(self) -> None:
        assert normalize_metadata({"userAgent": "   ", "platform": "", "source": "\t"}) is None

    def test_none_and_empty(self) -> None:
        assert normalize_metadata(None) is None
        assert normalize_metadata({}) is None

    def test_non_currency_metadata_has_no_preferred_currency(self) -> None:
        metadata = normalize_metadata({"user_agent": "Firefox", "timezone": "Asia/Kuala_Lumpur"})

        assert metadata is not None
        assert metadata.preferred_currency is None
        assert metadata.user_agent == "Firefox"

    def test_is_idempotent(self) -> None:
        once = normalize_metadata({"currency": "sgd", "source": "pwa"})
        assert normalize_metadata(once) == once

    def test_validation_rejects_short_currency(self) -> None:
        with pytest.raises(ValidationError):
            SubscriptionMetadataPayload.model_validate({"currency": "us"})


class TestGetPreferredCurrency:
    def test_currency_only(self) -> None:
        assert get_preferred_currency({"currency": "usd"}) == "USD"

    def test_preferred_over_currency(self) -> None:
        assert get_preferred_currency({"preferredCurrency": "eur", "currency": "usd"}) == "EUR"

    def test_missing_metadata_defaults_to_usd(self) -> None:
        assert get_preferred_currency(None) == "USD"

    def test_custom_fallback(self) -> None:
        assert get_preferred_currency(NormalizedSubscriptionMetadata(language="de"), fallback="EUR") == "EUR"

    def test_trims_candidate(self) -> None:
        assert get_preferred_currency(NormalizedSubscriptionMetadata(preferred_currency=" gbp ")) == "GBP"
