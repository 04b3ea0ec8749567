"""ExportDesk settings, read from the environment or a .env file."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings. Defaults run the demo desk locally.

    Environment Variables:
        LOG_LEVEL: Root log level
        LOG_JSON: Emit JSON log lines (default True)
        ENVIRONMENT: Deployment environment name
        SUBMISSION_REVIEW_DELAY_MS: Simulated portal delay before review starts
        SUBMISSION_SIGN_DELAY_MS: Simulated review duration for auto-sign portals
        SUBMISSION_REJECT_DELAY_MS: Simulated review duration for auto-reject portals
        DEFAULT_REJECTION_REASON: Reason used when the portal gives none
        TRACKING_ID_PREFIX: Prefix of generated submission tracking ids
        AUTHORITY_MIRROR_TYPE: Registered authority mirror adapter (LOG, MEMORY)
        SEED_DEMO_DATA: Load demo shipments and documents at startup
        CORS_ORIGINS: Comma-separated list of allowed origins
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Simulated state portal
    SUBMISSION_REVIEW_DELAY_MS: int = 2000
    SUBMISSION_SIGN_DELAY_MS: int = 3200
    SUBMISSION_REJECT_DELAY_MS: int = 2800
    DEFAULT_REJECTION_REASON: str = "HS description doesn't match invoice. Fix & resubmit."
    TRACKING_ID_PREFIX: str = "TRK"

    # Authority status mirror
    AUTHORITY_MIRROR_TYPE: str = "LOG"

    # Demo data
    SEED_DEMO_DATA: bool = True

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings; tests call get_settings.cache_clear() after patching the environment."""
    return Settings()
