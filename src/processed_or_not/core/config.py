# src/processed_or_not/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "ProcessedOrNot Lookup API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Keys: Mapping von API-Key zu Tenant-ID (JSON-String als Env-Var)
    # Format: '{"key_abc123": "tenant_alice", "key_xyz789": "tenant_bob"}'
    api_keys: dict[str, str] = Field(default_factory=dict)

    # External APIs
    usda_api_key: str = Field(default="DEMO_KEY")
    ean_search_api_key: str | None = None
    upc_itemdb_url: str = "https://api.upcitemdb.com/prod/trial"

    # Lookup: Reihenfolge der Quellen ist Produktpriorität, nicht zur Laufzeit umsortierbar
    barcode_lookup_order: list[str] = Field(
        default=["open_food_facts", "usda_fooddata", "upc_itemdb", "ean_search"]
    )
    text_lookup_order: list[str] = Field(
        default=["open_food_facts", "usda_fooddata", "upc_itemdb", "ean_search"]
    )
    adapter_timeout_seconds: float = 10.0

    # Progress Store
    progress_ttl_seconds: int = 300
    progress_sweep_interval_seconds: int = 60

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./processed_or_not.db"

    # Notifications (ntfy / Gotify)
    webhook_enabled: bool = False
    webhook_url: str | None = None

    # CORS
    cors_origins: list[str] = Field(default=["*"])

    # Rate Limiting (Requests pro Minute auf dem Lookup-Endpoint)
    rate_limit_requests: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
