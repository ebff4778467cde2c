"""
Application configuration.
All settings are loaded from environment variables (or a .env file).
Nothing here is required: every field has a documented default.
"""
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fallback backend address used when API_BASE_URL is not set.
# Points at the storefront backend started locally by its own dev setup (port 3001).
DEFAULT_API_BASE_URL = "http://localhost:3001/api"

# Spellings of the fulfil body field seen across backend versions.
FULFILL_CONTENT_FIELDS = ("content", "digitalContent")


class Settings(BaseSettings):
    """
    Resource client settings loaded from environment variables.

    The client factory warns when api_base_url falls back to DEFAULT_API_BASE_URL,
    so a misconfigured deployment is visible in the logs.
    """

    # ===========================================
    # BACKEND API
    # ===========================================
    api_base_url: str = DEFAULT_API_BASE_URL
    http_client_timeout: float = 10.0
    # Extra headers for every request, JSON object. Example: {"X-Admin-Key": "..."}
    api_default_headers: str = ""

    # ===========================================
    # BACKEND SCHEMA ADAPTERS
    # ===========================================
    # Older backends expect {"digitalContent": [...]} on POST /orders/{id}/fulfill
    fulfill_content_field: str = "content"

    # ===========================================
    # DASHBOARD
    # ===========================================
    recent_items_limit: int = 5

    # ===========================================
    # LOGGING
    # ===========================================
    request_id_header: str = "X-Request-Id"
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL; strip the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("http_client_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_client_timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log_level: {v}")
        return level

    @field_validator("fulfill_content_field")
    @classmethod
    def validate_fulfill_content_field(cls, v: str) -> str:
        if v not in FULFILL_CONTENT_FIELDS:
            raise ValueError(f"fulfill_content_field must be one of {FULFILL_CONTENT_FIELDS}")
        return v

    @field_validator("api_default_headers")
    @classmethod
    def validate_default_headers(cls, v: str) -> str:
        if not v.strip():
            return ""
        try:
            parsed = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"api_default_headers is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError("api_default_headers must be a JSON object")
        return v

    @property
    def default_headers(self) -> dict[str, str]:
        """Extra request headers as a dict."""
        if not self.api_default_headers:
            return {}
        return {str(k): str(v) for k, v in json.loads(self.api_default_headers).items()}

    @property
    def uses_default_api_base_url(self) -> bool:
        return self.api_base_url == DEFAULT_API_BASE_URL

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
