from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .gold import GoldPriceConfig
from .push import PushConfig, VapidConfig


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    Title: str = Field(default="Gold Tracker", description="Application title")
    Version: str = Field(default="1.0.0", description="Application version")
    Host: str = Field(default="0.0.0.0", description="Bind host")
    Port: int = Field(default=3000, validation_alias=AliasChoices("PORT", "Port"), description="Bind port")
    Debug: bool = Field(default=False, description="Enable debug mode")
    LogLevel: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "LogLevel"))
    CorsOrigins: list[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")

    GoldPrice: GoldPriceConfig = Field(default_factory=GoldPriceConfig, description="Gold price feed")
    Push: PushConfig = Field(default_factory=PushConfig, description="Web Push delivery service")


configs = AppConfig()

__all__ = ["AppConfig", "GoldPriceConfig", "PushConfig", "VapidConfig", "configs"]
