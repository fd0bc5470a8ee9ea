"""Environment settings - loads ArcSight connection details from .env file.

Priority:
1. Environment variables (highest priority)
2. .env file values
3. Default values in this file
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root: src/arcbridge/core/settings.py -> src/arcbridge/core/ -> src/arcbridge/ -> src/ -> project_root/
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / ".env"


class EnvSettings(BaseSettings):
    """ArcSight ESM connection settings and runtime tuning."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================
    # ArcSight ESM API
    # ============================================
    arcsight_api_base_url: str = ""
    arcsight_api_prefix: str = "/v1"
    arcsight_verify_ssl: bool = False  # ESM appliances usually ship self-signed certs

    # ============================================
    # Credentials
    # ============================================
    # Static token wins over login when set
    arcsight_api_token: str = ""
    arcsight_login_url: str = ""
    arcsight_username: str = ""
    arcsight_password: str = ""

    # ============================================
    # Connection Pool & Timeouts (seconds)
    # ============================================
    arcsight_max_connections: int = 6
    arcsight_connect_timeout: float = 15.0
    arcsight_request_timeout: float = 15.0
    arcsight_device_map_timeout: float = 45.0

    # ============================================
    # Bulk Fetch
    # ============================================
    arcsight_batch_size: int = 50

    # ============================================
    # Logging
    # ============================================
    log_level: str = "INFO"

    @field_validator("arcsight_api_base_url", "arcsight_login_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @property
    def base_url(self) -> str:
        """Base URL including the API prefix, or empty string if unset."""
        if not self.arcsight_api_base_url:
            return ""
        return f"{self.arcsight_api_base_url}{self.arcsight_api_prefix}"

    @property
    def has_login_config(self) -> bool:
        return bool(self.arcsight_login_url and self.arcsight_username and self.arcsight_password)


settings = EnvSettings()


__all__ = [
    "ENV_FILE_PATH",
    "PROJECT_ROOT",
    "EnvSettings",
    "settings",
]
