"""
Environment configuration loader with validation for the booking engine.
"""

import os
import logging
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv


class EngineConfig(BaseModel):
    """Configuration model for the booking engine with validation."""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///aerobook.db", description="Database connection URL"
    )
    database_echo: bool = Field(default=False, description="Log SQL statements")

    # Seat lock Configuration
    lock_backend: str = Field(
        default="local", description="Per-flight lock backend: 'local' or 'valkey'"
    )
    lock_ttl_seconds: int = Field(
        default=30, ge=1, le=300, description="Distributed lock expiry in seconds"
    )
    lock_timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Maximum wait for a per-flight lock"
    )

    # Valkey Configuration (only used by the 'valkey' lock backend)
    valkey_host: str = Field(default="localhost", description="Valkey server host")
    valkey_port: int = Field(
        default=6379, ge=1, le=65535, description="Valkey server port"
    )
    valkey_password: Optional[str] = Field(
        default=None, description="Valkey server password"
    )
    valkey_database: int = Field(
        default=0, ge=0, le=15, description="Valkey database number"
    )
    valkey_socket_timeout: float = Field(
        default=5.0, gt=0.0, description="Valkey socket timeout in seconds"
    )

    # Record locator Configuration
    pnr_suffix_length: int = Field(
        default=6, ge=4, le=10, description="Random characters after the airline code"
    )
    pnr_max_attempts: int = Field(
        default=100, ge=1, description="Collision retries before giving up on a PNR"
    )
    booking_insert_max_attempts: int = Field(
        default=5, ge=1, description="Insert retries after a PNR conflict at write time"
    )

    # Credentials
    generated_password_length: int = Field(
        default=8, ge=6, le=128, description="Length of generated passwords"
    )

    # Application
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("lock_backend")
    @classmethod
    def validate_lock_backend(cls, v: str) -> str:
        """Validate the lock backend name."""
        if v.lower() not in ("local", "valkey"):
            raise ValueError("Lock backend must be 'local' or 'valkey'")
        return v.lower()

    def to_valkey_kwargs(self) -> Dict[str, Any]:
        """Connection parameters for a valkey.Valkey client."""
        kwargs = {
            "host": self.valkey_host,
            "port": self.valkey_port,
            "db": self.valkey_database,
            "socket_timeout": self.valkey_socket_timeout,
            "decode_responses": True,
        }
        if self.valkey_password:
            kwargs["password"] = self.valkey_password
        return kwargs


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


def load_config(env_file: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Optional path to .env file. If None, looks for .env in current directory.

    Returns:
        EngineConfig: Validated configuration object

    Raises:
        ValueError: If configuration is invalid
    """
    if env_file is None:
        env_file = ".env"

    if os.path.exists(env_file):
        load_dotenv(env_file)

    config_data: Dict[str, Any] = {
        "database_url": os.getenv("DATABASE_URL", "sqlite:///aerobook.db"),
        "database_echo": _env_flag("DATABASE_ECHO"),
        "lock_backend": os.getenv("LOCK_BACKEND", "local"),
        "lock_ttl_seconds": int(os.getenv("LOCK_TTL_SECONDS", "30")),
        "lock_timeout_seconds": float(os.getenv("LOCK_TIMEOUT_SECONDS", "10.0")),
        "valkey_host": os.getenv("VALKEY_HOST", "localhost"),
        "valkey_port": int(os.getenv("VALKEY_PORT", "6379")),
        "valkey_password": os.getenv("VALKEY_PASSWORD") or None,
        "valkey_database": int(os.getenv("VALKEY_DATABASE", "0")),
        "valkey_socket_timeout": float(os.getenv("VALKEY_SOCKET_TIMEOUT", "5.0")),
        "pnr_suffix_length": int(os.getenv("PNR_SUFFIX_LENGTH", "6")),
        "pnr_max_attempts": int(os.getenv("PNR_MAX_ATTEMPTS", "100")),
        "booking_insert_max_attempts": int(os.getenv("BOOKING_INSERT_MAX_ATTEMPTS", "5")),
        "generated_password_length": int(os.getenv("GENERATED_PASSWORD_LENGTH", "8")),
        "debug": _env_flag("AEROBOOK_DEBUG"),
        "log_level": os.getenv("AEROBOOK_LOG_LEVEL", "INFO"),
    }

    try:
        return EngineConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")


def configure_logging(config: EngineConfig) -> None:
    """Set up root logging at the configured level."""
    level = logging.DEBUG if config.debug else getattr(logging, config.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Global configuration instance
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """
    Get the global configuration instance, loading it if necessary.

    Returns:
        EngineConfig: The global configuration object
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration so the next get_config() reloads it."""
    global _config
    _config = None
