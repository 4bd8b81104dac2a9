"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StorageBackendKind(str, Enum):
    """Backend used to hold staged circuit inputs."""

    MEMORY = "memory"
    REDIS = "redis"


class SecurityLevel(str, Enum):
    """How much binding material is added to private inputs before staging."""

    STANDARD = "standard"
    ENHANCED = "enhanced"
    MAXIMUM = "maximum"


class RedisSettings(BaseSettings):
    """Redis configuration for staged inputs."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr("")
    db: int = 0
    max_connections: int = 50

    @property
    def url(self) -> str:
        """Generate Redis connection URL."""
        pwd = self.password.get_secret_value()
        if pwd:
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class ZKSettings(BaseSettings):
    """Proof parameter derivation and staging configuration."""

    model_config = SettingsConfigDict(env_prefix="ZK_")

    # Derivation
    default_decimals: int = Field(default=18, ge=0, le=18)
    ownership_message: str = "I confirm ownership of wallet {address}"
    enforce_signer_match: bool = True

    # Circuit registry (optional JSON file with constraint counts)
    registry_path: Path | None = None

    # Staging
    default_security_level: SecurityLevel = SecurityLevel.ENHANCED
    storage_backend: StorageBackendKind = StorageBackendKind.MEMORY
    staging_ttl_seconds: int = Field(default=15 * 60, gt=0)
    staging_timeout_seconds: float = Field(default=5.0, gt=0)
    kdf_iterations: int = Field(default=210_000, ge=1_000)
    storage_key_prefix: str = "zk-input:"
    storage_max_retries: int = Field(default=3, ge=1)

    @field_validator("default_security_level", mode="before")
    @classmethod
    def lowercase_security_level(cls, v: object) -> object:
        """Security levels are stored lowercase."""
        return v.lower() if isinstance(v, str) else v


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    parameters: int = Field(default=8010, alias="PARAMETERS_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    # Project paths
    project_root: Path = Field(default_factory=lambda: Path(__file__).parent.parent.parent)

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Storage
    redis: RedisSettings = Field(default_factory=RedisSettings)

    # Proof parameters
    zk: ZKSettings = Field(default_factory=ZKSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
