"""
Configuration management for authflow
Uses pydantic-settings for environment variable loading and validation
"""

from functools import lru_cache
from typing import List
from pydantic import Field, validator
from pydantic_settings import BaseSettings


HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "authflow"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./authflow.db")
    DATABASE_POOL_SIZE: int = Field(default=20)
    DATABASE_MAX_OVERFLOW: int = Field(default=10)
    DATABASE_POOL_TIMEOUT: int = Field(default=30)
    DATABASE_ECHO: bool = Field(default=False)

    # Step tokens (JWT)
    JWT_SECRET: str = Field(..., min_length=32)
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_ISSUER: str = Field(default="authflow")
    STEP_TOKEN_TTL_MINUTES: int = Field(default=5, gt=0)
    ACCESS_TOKEN_TTL_MINUTES: int = Field(default=60, gt=0)

    # Passwords
    PASSWORD_BCRYPT_COST: int = Field(default=10)
    PASSWORD_MIN_LENGTH: int = Field(default=8, ge=1)

    # TOTP
    TOTP_ISSUER: str = Field(default="MiApp AWS - 2FA")
    TOTP_VALID_WINDOW: int = Field(default=1, ge=0)
    TOTP_INTERVAL_SECONDS: int = Field(default=30, gt=0)
    TOTP_DIGITS: int = Field(default=6)

    # Login responses distinguish unknown user from wrong password unless enabled
    LOGIN_UNIFORM_ERRORS: bool = Field(default=False)

    # CORS
    CORS_ALLOWED_ORIGINS: str = Field(default="*")  # comma-separated
    CORS_ALLOW_CREDENTIALS: bool = Field(default=False)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # 'json' or 'text'

    @validator("JWT_ALGORITHM")
    def validate_jwt_algorithm(cls, v):
        """Step tokens are signed with the shared secret, so only HMAC algorithms apply"""
        if v.upper() not in HMAC_ALGORITHMS:
            raise ValueError(f"JWT_ALGORITHM must be one of {HMAC_ALGORITHMS}")
        return v.upper()

    @validator("PASSWORD_BCRYPT_COST")
    def validate_bcrypt_cost(cls, v):
        """bcrypt accepts log2 rounds between 4 and 31"""
        if not 4 <= v <= 31:
            raise ValueError("PASSWORD_BCRYPT_COST must be between 4 and 31")
        return v

    @validator("TOTP_DIGITS")
    def validate_totp_digits(cls, v):
        """Authenticator apps support 6 or 8 digit codes"""
        if v not in (6, 8):
            raise ValueError("TOTP_DIGITS must be 6 or 8")
        return v

    @validator("LOG_LEVEL")
    def validate_log_level(cls, v):
        """Validate log level"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @validator("LOG_FORMAT")
    def validate_log_format(cls, v):
        """Validate log format"""
        if v.lower() not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v.lower()

    @property
    def cors_origins(self) -> List[str]:
        """Parse comma-separated CORS origins to list"""
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
