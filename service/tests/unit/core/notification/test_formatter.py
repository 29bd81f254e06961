import json

from app.core.notification.formatter import format_change, format_gold_price_notification, format_percentage
from tests.factories.push import GoldPriceQuoteFactory


class TestFormatGoldPriceNotification:
    def test_upward_movement(self) -> None:
        parsed = json.loads(format_gold_price_notification(GoldPriceQuoteFactory.build()))

        assert "USD" in parsed["title"]
        assert "2345.67 USD" in parsed["body"]
        assert "▲" in parsed["body"]
        assert "+12.34" in parsed["body"]
        assert "+0.56%" in parsed["body"]
        assert parsed["body"] == "2345.67 USD ▲ +12.34 (+0.56%)"
        assert parsed["tag"] == "gold-price-usd"
        assert parsed["data"] == {
            "currency": "USD",
            "price": 2345.67,
            "change": 12.34,
            "changePercent": 0.56,
            "timestamp": 1_700_000_000,
        }

    def test_downward_movement(self) -> None:
        quote = GoldPriceQuoteFactory.build(currency="EUR", chg_xau=-5.43, pc_xau=-1.23)
        parsed = json.loads(format_gold_price_notification(quote))

        assert "▼" in parsed["body"]
        assert "-5.43" in parsed["body"]
        assert "-1.23%" in parsed["body"]
        assert parsed["tag"] == "gold-price-eur"

    def test_unchanged_price_counts_as_up(self) -> None:
        parsed = json.loads(format_gold_price_notification(GoldPriceQuoteFactory.build(chg_xau=0.0, pc_xau=0.0)))
        assert parsed["body"].endswith("▲ +0.00 (+0.00%)")

    def test_non_finite_values_render_as_zero(self) -> None:
        parsed = json.loads(format_gold_price_notification(GoldPriceQuoteFactory.build(xau_price=float("nan"))))
        assert parsed["body"].startswith("0.00 USD")
        assert format_change(float("inf")) == "0.00"
        assert format_percentage(float("nan")) == "0.00%"
