"""
Configuration management for the CertQuote pricing service.

STRICT CONFIGURATION POLICY:
- NO default values for critical settings
- Server MUST fail to start if required values are missing
- Configuration from environment variables or the .env file
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
import os


class Settings(BaseSettings):
    """
    Application settings with STRICT validation.

    Critical fields are REQUIRED and have NO defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Configuration - Basic defaults OK
    app_name: str = "CertQuotePricing"
    app_version: str = "1.0.0"
    environment: str  # REQUIRED - no default
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Pricing data files - Sensible defaults OK
    pricing_settings_path: str = "pricing-settings.yaml"
    reference_data_path: str = "reference-data.yaml"
    default_tax_rate_id: Optional[str] = None

    # Authoritative recalculation endpoint - Optional (preview-only without it)
    recalculation_url: Optional[str] = None
    recalculation_api_key: Optional[str] = None
    recalculation_timeout: float = 10.0

    # Logging - Sensible defaults OK
    log_level: str = "INFO"
    log_file: str = "./logs/certquote.log"

    # CORS Configuration - REQUIRED, no defaults
    cors_origins: str  # REQUIRED - no default
    cors_credentials: bool = True
    cors_methods: str = "GET,POST,OPTIONS"
    cors_headers: str = "*"

    @field_validator('cors_origins')
    @classmethod
    def validate_cors_origins(cls, v):
        """Parse CORS origins to list."""
        if not v:
            raise ValueError("CORS_ORIGINS must be set")
        return [origin.strip() for origin in v.split(',') if origin.strip()]

    @field_validator('cors_methods')
    @classmethod
    def validate_cors_methods(cls, v):
        """Parse CORS methods to list."""
        return [method.strip() for method in v.split(',') if method.strip()]

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got '{v}'")
        return level

    @field_validator('recalculation_timeout')
    @classmethod
    def validate_recalculation_timeout(cls, v):
        if v <= 0:
            raise ValueError("RECALCULATION_TIMEOUT must be positive")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    @property
    def recalculation_enabled(self) -> bool:
        return bool(self.recalculation_url)

    @property
    def log_config(self) -> dict:
        """Get logging configuration."""
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S"
                },
                "json": {
                    "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                    "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
                }
            },
            "handlers": {
                "default": {
                    "formatter": "default",
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout"
                },
                "file": {
                    "formatter": "json" if self.is_production else "default",
                    "class": "logging.FileHandler",
                    "filename": self.log_file,
                    "mode": "a"
                }
            },
            "root": {
                "level": self.log_level,
                "handlers": ["default", "file"]
            }
        }

    def ensure_directories(self):
        """Ensure the log directory exists."""
        directory = os.path.dirname(self.log_file) if self.log_file else None
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


# Global settings instance
settings = get_settings()

# Ensure directories exist on import
settings.ensure_directories()
