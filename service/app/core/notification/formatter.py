"""Render a gold price quote as a Web Push payload."""

from __future__ import annotations

import json
import math

from app.core.gold.client import GoldPriceQuote

NOTIFICATION_URL = "/"


def _fixed(value: float) -> str:
    return f"{abs(value):.2f}"


def format_price(amount: float, currency: str) -> str:
    if not math.isfinite(amount):
        return f"0.00 {currency}"
    return f"{amount:.2f} {currency}"


def format_change(change: float) -> str:
    if not math.isfinite(change):
        return "0.00"
    sign = "+" if change >= 0 else "-"
    return f"{sign}{_fixed(change)}"


def format_percentage(percentage: float) -> str:
    if not math.isfinite(percentage):
        return "0.00%"
    sign = "+" if percentage >= 0 else "-"
    return f"{sign}{_fixed(percentage)}%"


def format_gold_price_notification(quote: GoldPriceQuote) -> str:
    """Return the JSON payload handed to the Web Push encryption layer.

    ``tag`` lets the browser replace a superseded notification for the same
    currency instead of stacking them.
    """
    direction = "▲" if quote.chg_xau >= 0 else "▼"
    body = (
        f"{format_price(quote.xau_price, quote.currency)} {direction} "
        f"{format_change(quote.chg_xau)} ({format_percentage(quote.pc_xau)})"
    )

    payload = {
        "title": f"Gold price update ({quote.currency})",
        "body": body,
        "tag": f"gold-price-{quote.currency.lower()}",
        "url": NOTIFICATION_URL,
        "data": {
            "currency": quote.currency,
            "price": quote.xau_price,
            "change": quote.chg_xau,
            "changePercent": quote.pc_xau,
            "timestamp": quote.timestamp,
        },
    }
    return json.dumps(payload, ensure_ascii=False)
