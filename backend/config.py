"""Centralized configuration using Pydantic Settings.

All settings can be overridden via environment variables with the SEOPILOT_ prefix,
or via a .env file. Example: SEOPILOT_PORT=8080
"""

from pydantic_settings import BaseSettings
from typing import Optional

# The dispatcher never claims more rows than this per tick
MAX_QUEUE_BATCH_SIZE = 5


class Settings(BaseSettings):
    """SEOPilot application settings."""

    # General
    port: int = 5780
    api_key: str = ""  # Empty = no auth required
    log_level: str = "INFO"
    log_format: str = "text"  # text | json
    log_file: str = "/config/logs/seopilot.log"
    db_path: str = "/config/seopilot.db"
    database_url: str = ""  # Overrides db_path when set (e.g. postgresql://...)
    cors_allowed_origins: str = "*"

    # LLM gateway (any OpenAI-compatible endpoint)
    llm_base_url: str = "https://ai.gateway.lovable.dev/v1"
    llm_api_key: str = ""
    llm_model: str = "google/gemini-2.5-flash"
    llm_request_timeout: int = 120
    llm_temperature: float = 0.7

    # Generation queue (bulk per-product jobs)
    queue_batch_size: int = MAX_QUEUE_BATCH_SIZE
    queue_poll_interval_seconds: int = 0  # 0 = scheduler disabled

    # Resolution runs
    resolution_batch_size: int = 10
    resolution_batch_pause_ms: int = 100
    resolution_rate_limit_pause_seconds: float = 2.0
    resolution_item_workers: int = 5
    resolution_stale_after_seconds: int = 120
    resolution_max_workers: int = 2

    # WooCommerce
    woocommerce_request_timeout: int = 30
    woocommerce_max_retries: int = 3
    woocommerce_page_size: int = 100

    # Google Programmable Search (SERP analysis)
    google_search_api_key: str = ""
    google_search_engine_id: str = ""
    serp_scrape_timeout: int = 5
    serp_result_count: int = 5
    serp_scrape_count: int = 3

    default_language: str = "fr"

    model_config = {
        "env_prefix": "SEOPILOT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def get_database_url(self) -> str:
        """SQLAlchemy URL: explicit database_url, else a SQLite file at db_path."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.db_path}"

    def get_queue_batch_size(self) -> int:
        """Configured dispatcher batch size, clamped to 1..MAX_QUEUE_BATCH_SIZE."""
        return max(1, min(self.queue_batch_size, MAX_QUEUE_BATCH_SIZE))

    def get_safe_config(self) -> dict:
        """Get config dict without sensitive values (API keys)."""
        data = self.model_dump()
        for key in list(data.keys()):
            if "api_key" in key or "key" in key.split("_"):
                if data[key]:
                    data[key] = "***configured***"
                else:
                    data[key] = ""
        return data


# Singleton settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(overrides: dict = None) -> Settings:
    """Force reload settings from environment/file, with optional overrides.

    Args:
        overrides: Dict of key-value pairs applied on top of the env/file
                   settings. String values are coerced to the field type.
    """
    global _settings
    base = Settings()

    if overrides:
        base_data = base.model_dump()
        update = {}
        for key, value in overrides.items():
            if key not in base_data:
                continue
            expected_type = type(base_data[key])
            try:
                if expected_type is bool:
                    update[key] = value.lower() in ("true", "1", "yes") if isinstance(value, str) else bool(value)
                elif expected_type is int:
                    update[key] = int(value)
                elif expected_type is float:
                    update[key] = float(value)
                else:
                    update[key] = str(value)
            except (ValueError, TypeError):
                continue  # Skip invalid values

        _settings = base.model_copy(update=update) if update else base
    else:
        _settings = base

    return _settings
