"""Application configuration management using Pydantic Settings."""
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the directory where settings.py is located
BASE_DIR = Path(__file__).resolve().parent

class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "B2B Marketplace"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # MongoDB
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = "b2b_marketplace"
    mongodb_user_collection: str = "users"
    mongodb_product_collection: str = "products"
    mongodb_cart_collection: str = "carts"
    mongodb_order_collection: str = "orders"
    mongodb_favorite_collection: str = "favorites"
    mongodb_message_collection: str = "messages"
    mongodb_rate_limit_collection: str = "rate_limits"
    mongodb_max_pool_size: int = 10
    mongodb_min_pool_size: int = 1

    # Checkout
    checkout_tax_rate: Decimal = Field(default=Decimal("0.10"), ge=0, le=1)
    checkout_max_selected_items: int = Field(default=50, ge=1)
    checkout_max_instructions_length: int = 500
    checkout_shipping_fees: dict[str, Decimal] = {
        "standard": Decimal("8.00"),
        "express": Decimal("15.00"),
        "economy": Decimal("3.00"),
    }
    checkout_delivery_days: dict[str, int] = {
        "express": 2,
        "standard": 5,
        "economy": 10,
        "pickup": 1,
    }
    checkout_default_country: str = "Uzbekistan"
    checkout_net_payment_days: int = 30
    checkout_redirect_url: str = "/buyer/orders"

    # Platform bank account attached to bank_transfer orders
    bank_name: str = "National Bank of Uzbekistan"
    bank_account_number: str = "UZ86 0000 0000 0000 0000 0000 0000"
    bank_swift_code: str = "NBUZUZGX"
    bank_routing_number: str = "860000001"

    # Rate Limiting
    rate_limit_requests: int = 60
    rate_limit_period: int = 60  # seconds
    rate_limit_backend: str = Field(default="memory", pattern="^(memory|mongodb)$")

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = "json"

    model_config = SettingsConfigDict(
        env_file= BASE_DIR.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("checkout_delivery_days")
    @classmethod
    def require_fallback_days(cls, v: dict[str, int]) -> dict[str, int]:
        """Pickup orders and the standard fallback tier always need an estimate."""
        missing = [tier for tier in ("pickup", "standard") if tier not in v]
        if missing:
            raise ValueError(f"checkout_delivery_days must define {missing}")
        return v

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
