"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes Supabase and Vonage credentials
- Reports missing verification settings per request
- Validates configuration on startup
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import List, Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Loaded once at process start and never mutated.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Supabase (identity + profile store)
    SUPABASE_URL: Optional[str] = Field(
        default=None,
        description="Supabase project URL"
    )
    SUPABASE_SERVICE_ROLE: Optional[str] = Field(
        default=None,
        description="Supabase service role key (server-side only)"
    )
    SUPABASE_PROFILES_TABLE: str = Field(
        default="profiles",
        description="Table holding the verification columns"
    )

    # Vonage Verify
    VONAGE_API_KEY: Optional[str] = Field(
        default=None,
        description="Vonage API key"
    )
    VONAGE_API_SECRET: Optional[str] = Field(
        default=None,
        description="Vonage API secret"
    )
    VONAGE_BRAND: str = Field(
        default="Spark",
        description="Brand name shown in the verification SMS"
    )
    VONAGE_BASE_URL: str = Field(
        default="https://api.nexmo.com",
        description="Vonage API base URL"
    )
    VONAGE_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Vonage request timeout in seconds"
    )

    # Verification
    VERIFY_RESEND_COOLDOWN_SECONDS: int = Field(
        default=60,
        description="Minimum seconds between two start calls for one user (0 disables)"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("VERIFY_RESEND_COOLDOWN_SECONDS")
    def validate_cooldown(cls, v):
        """Cooldown cannot be negative."""
        if v < 0:
            raise ValueError("VERIFY_RESEND_COOLDOWN_SECONDS must be >= 0")
        return v

    @validator("VONAGE_BASE_URL", "SUPABASE_URL")
    def strip_trailing_slash(cls, v):
        if v:
            return v.rstrip("/")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def store_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE)

    @property
    def provider_configured(self) -> bool:
        return bool(self.VONAGE_API_KEY and self.VONAGE_API_SECRET)

    def missing_verification_settings(self) -> List[str]:
        """
        Lists the required verification settings that are not set.

        Returns:
            Names of missing settings (empty when fully configured)
        """
        required = {
            "SUPABASE_URL": self.SUPABASE_URL,
            "SUPABASE_SERVICE_ROLE": self.SUPABASE_SERVICE_ROLE,
            "VONAGE_API_KEY": self.VONAGE_API_KEY,
            "VONAGE_API_SECRET": self.VONAGE_API_SECRET,
        }
        return [name for name, value in required.items() if not value]

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None):
    """
    Validates critical settings on application startup.
    Missing credentials are fatal in production only; elsewhere each
    request reports them as a configuration error.

    Returns:
        List of missing setting names

    Raises:
        ValueError: If required settings are missing in production
    """
    config = config or settings
    missing = config.missing_verification_settings()

    if missing and config.is_production:
        raise ValueError(f"Configuration validation failed: {', '.join(missing)} required")

    return missing
