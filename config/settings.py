"""
Configuration settings for the survey mission engine
"""

import os
from typing import Annotated, List, Optional
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application settings
    APP_NAME: str = "Survey Mission Engine"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS settings
    ALLOWED_HOSTS: Annotated[List[str], NoDecode] = ["*"]

    # Flight limits
    MAX_ALTITUDE: float = 120.0  # meters
    MAX_SPEED: float = 20.0  # m/s
    MAX_WAYPOINTS: int = 5000  # default-overlap crosshatch emits ~2300

    # Planning settings
    DEFAULT_OVERLAP: float = 70.0  # percentage

    # Lifecycle settings
    DRONE_RETURN_GRACE_SECONDS: float = 10.0
    RELEASE_RETRY_ATTEMPTS: int = 3
    RELEASE_RETRY_DELAY: float = 1.0  # seconds, doubled on every retry
    STORE_COMMIT_RETRIES: int = 5

    # Event settings
    EVENT_HISTORY_SIZE: int = 1000

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT: int = 5

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def validate_allowed_hosts(cls, v):
        if isinstance(v, str):
            if v.strip() == "":
                return []
            return [host.strip() for host in v.split(",")]
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("DEFAULT_OVERLAP")
    @classmethod
    def validate_default_overlap(cls, v):
        if not (0 <= v < 100):
            raise ValueError("Default overlap must be in [0, 100)")
        return v

    @field_validator("DRONE_RETURN_GRACE_SECONDS", "RELEASE_RETRY_DELAY")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Delays cannot be negative")
        return v

    @field_validator("STORE_COMMIT_RETRIES", "RELEASE_RETRY_ATTEMPTS")
    @classmethod
    def validate_retries(cls, v):
        if v < 0:
            raise ValueError("Retry counts cannot be negative")
        return v

    @property
    def flight_limits(self) -> dict:
        """Get flight limits as a dictionary"""
        return {
            "max_altitude": self.MAX_ALTITUDE,
            "max_speed": self.MAX_SPEED,
            "max_waypoints": self.MAX_WAYPOINTS
        }

    @property
    def lifecycle_params(self) -> dict:
        """Get lifecycle timing parameters as a dictionary"""
        return {
            "drone_return_grace_seconds": self.DRONE_RETURN_GRACE_SECONDS,
            "release_retry_attempts": self.RELEASE_RETRY_ATTEMPTS,
            "release_retry_delay": self.RELEASE_RETRY_DELAY,
            "store_commit_retries": self.STORE_COMMIT_RETRIES
        }


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)"""
    return get_settings_for_environment()


# Environment-specific settings
class DevelopmentSettings(Settings):
    """Development environment settings"""
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"


class ProductionSettings(Settings):
    """Production environment settings"""
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_HOSTS: Annotated[List[str], NoDecode] = ["localhost", "127.0.0.1"]


class TestingSettings(Settings):
    """Testing environment settings"""
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"
    DRONE_RETURN_GRACE_SECONDS: float = 0.05
    RELEASE_RETRY_DELAY: float = 0.01


def get_settings_for_environment(env: str = None) -> Settings:
    """Get settings for specific environment"""
    env = env or os.getenv("ENVIRONMENT", "development").lower()

    if env == "production":
        return ProductionSettings()
    elif env == "testing":
        return TestingSettings()
    else:
        return DevelopmentSettings()
