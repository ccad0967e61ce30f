from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can come from:
    - .env file (local overrides)
    - System environment

    Variable names are the upper-cased field names:
    - API_BASE_URL, HTTP_TIMEOUT_SECONDS (for the CEN API)
    - CEN_ROTATION_INTERVAL_SECONDS, KEY_VALIDITY_SECONDS (for matching)
    - OWN_KEYS_PER_REPORT, FAIL_ON_MISSING_OWN_KEYS (for report submission)
    """

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    # CEN API
    api_base_url: str = "https://coepi.wolk.com:8080"
    http_timeout_seconds: float = 30.0
    report_fetch_concurrency: int = 8

    # Identifier derivation
    cen_rotation_interval_seconds: int = 900  # 15 minutes per CEN
    key_validity_seconds: int = 604800  # disclosed keys are matched a week back
    key_rotation_seconds: int = 604800

    # Report submission
    own_keys_per_report: int = 3
    fail_on_missing_own_keys: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @field_validator('api_base_url', mode='before')
    @classmethod
    def strip_trailing_slash(cls, v):
        """Endpoints are joined with '/', so drop any trailing slash"""
        if isinstance(v, str):
            return v.rstrip('/')
        return v

    @field_validator(
        'cen_rotation_interval_seconds',
        'key_validity_seconds',
        'key_rotation_seconds',
        'own_keys_per_report',
        'report_fetch_concurrency',
    )
    @classmethod
    def require_positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive, got {v}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
