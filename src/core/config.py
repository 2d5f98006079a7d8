"""
Core configuration for the Medicine Cabinet API.
Manages environment variables and AWS service settings.
"""
import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # AWS Configuration
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    drugs_table_name: str = os.getenv("DRUGS_TABLE_NAME", "")
    users_table_name: str = os.getenv("USERS_TABLE_NAME", "")
    ses_sender_email: str = os.getenv("SES_SENDER_EMAIL", "")

    # API Configuration
    api_title: str = os.getenv("API_TITLE", "Medicine Cabinet API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")

    # Expiration dates are built and compared in this zone
    time_zone: str = os.getenv("TIME_ZONE", "Europe/Warsaw")

    # Expiry alerts
    alert_horizon_days: int = int(os.getenv("ALERT_HORIZON_DAYS", "30"))
    notification_timeout_seconds: int = int(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10"))

    # Pagination Configuration
    search_default_page_size: int = int(os.getenv("SEARCH_DEFAULT_PAGE_SIZE", "20"))
    search_max_page_size: int = int(os.getenv("SEARCH_MAX_PAGE_SIZE", "100"))
    export_max_page_size: int = int(os.getenv("EXPORT_MAX_PAGE_SIZE", "500"))

    # Per-owner result cache
    cache_ttl_seconds: int = int(os.getenv("CACHE_TTL_SECONDS", "60"))

    # Authentication
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_expiration_hours: int = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def jwt_secret(self) -> str:
        """Get JWT secret from Parameter Store."""
        try:
            from src.core.parameter_store import get_parameter
            return get_parameter(f"/medicine-cabinet-api/{self.environment}/jwt-secret", self.aws_region)
        except Exception as e:
            # Fallback for local dev or if parameter doesn't exist
            fallback = os.getenv("JWT_SECRET", "dev-secret-change-in-production")
            from src.core.logger import get_logger
            get_logger(__name__).warning("Using fallback JWT secret. Error: %s", e)
            return fallback

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "dev")

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
