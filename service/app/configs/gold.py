from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoldPriceConfig(BaseSettings):
    """Upstream gold price feed.

    Environment variables:
        GOLD_PRICE_ApiBase        : base URL, the currency code is appended as a path segment
        GOLD_PRICE_TimeoutSeconds : per-request timeout for the upstream call
    """

    model_config = SettingsConfigDict(env_prefix="GOLD_PRICE_", case_sensitive=False, extra="ignore")

    ApiBase: str = Field(
        default="https://data-asg.goldprice.org/dbXRates",
        description="goldprice.org rates endpoint (currency appended as /<CODE>)",
    )
    TimeoutSeconds: float = Field(default=15.0, description="Upstream request timeout in seconds")
