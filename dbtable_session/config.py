"""Configuration module for the database-table session save handler.

Implements Pydantic v2 Settings for configuration management with support for:
- Environment variables (DBTABLE_SESSION_* prefix)
- YAML/TOML configuration files
- Command-line argument overrides
- Fail-fast validation at startup

Configuration priority (later overrides earlier):
1. Built-in defaults
2. Configuration file (YAML/TOML)
3. Environment variables
4. Command-line arguments
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbtable_session.session.schema import SchemaConfig


class Settings(BaseSettings):
    """Application configuration with sensible defaults.

    Example:
        # Load from environment only
        settings = Settings()

        # Override specific values
        settings = Settings(session_table_name="php_sessions", session_gc_maxlifetime=3600)
    """

    model_config = SettingsConfigDict(
        env_prefix="DBTABLE_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    log_format: Literal["json", "text"] = Field(default="json", description="Log output format")

    log_file: str | None = Field(default=None, description="Optional JSON log file path")

    # ========================================
    # Database Configuration
    # ========================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///./sessions.db",
        description="Database connection URL (SQLite or PostgreSQL)",
    )

    database_pool_size: int = Field(
        default=5, ge=1, le=100, description="Database connection pool size"
    )

    database_max_overflow: int = Field(
        default=10, ge=0, le=100, description="Max overflow connections beyond pool size"
    )

    database_echo: bool = Field(
        default=False, description="Echo SQL statements to logs (debug only)"
    )

    # ========================================
    # Session Table
    # ========================================

    session_table_name: str = Field(default="sessions", description="Session table name")

    session_id_column: str = Field(default="id", description="Column holding the session id")

    session_name_column: str = Field(
        default="name", description="Column holding the session name (namespace)"
    )

    session_data_column: str = Field(
        default="data", description="Column holding the serialized session payload"
    )

    session_modified_column: str = Field(
        default="modified", description="Column holding the last-write unix timestamp"
    )

    session_lifetime_column: str = Field(
        default="lifetime", description="Column holding the session lifetime in seconds"
    )

    # ========================================
    # Session Lifecycle
    # ========================================

    session_name: str = Field(
        default="PHPSESSID", description="Session name used by the gc command"
    )

    session_save_path: str = Field(default="", description="Save path passed to open()")

    session_gc_maxlifetime: int = Field(
        default=1440, ge=1, description="Max session lifetime in seconds, captured on open()"
    )

    # ========================================
    # Validators
    # ========================================

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not (
            v.startswith("sqlite+aiosqlite://")
            or v.startswith("postgresql+asyncpg://")
            or v.startswith("postgresql+psycopg://")
        ):
            raise ValueError(
                "database_url must use an async driver: SQLite (sqlite+aiosqlite://) or "
                "PostgreSQL (postgresql+asyncpg://, postgresql+psycopg://)"
            )
        return v

    @field_validator("session_table_name")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        """Table name must not be blank."""
        if not v.strip():
            raise ValueError("session_table_name must be non-empty")
        return v

    @model_validator(mode="after")
    def validate_session_columns(self) -> "Settings":
        """Validate the column mapping up front."""
        try:
            self.schema_config()
        except ValidationError as e:
            reasons = "; ".join(err["msg"] for err in e.errors())
            raise ValueError(f"Invalid session column mapping: {reasons}") from e
        return self

    # ========================================
    # Helper Methods
    # ========================================

    @property
    def is_sqlite(self) -> bool:
        """Check if database is SQLite."""
        return self.database_url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        """Check if database is PostgreSQL."""
        return self.database_url.startswith("postgresql")

    @property
    def database_driver(self) -> str:
        """Get database driver name."""
        if self.database_url.startswith("sqlite+aiosqlite://"):
            return "aiosqlite"
        elif self.database_url.startswith("postgresql+asyncpg://"):
            return "asyncpg"
        elif self.database_url.startswith("postgresql+psycopg://"):
            return "psycopg"
        else:
            return "unknown"

    def schema_config(self) -> SchemaConfig:
        """Build the session table column mapping.

        Raises:
            pydantic.ValidationError: If column names are empty or not distinct
        """
        return SchemaConfig(
            id_column=self.session_id_column,
            name_column=self.session_name_column,
            data_column=self.session_data_column,
            modified_column=self.session_modified_column,
            lifetime_column=self.session_lifetime_column,
        )

    def to_dict(self) -> dict:
        """Convert settings to dictionary, masking the database password."""
        data = self.model_dump()
        url = data.get("database_url", "")
        if "@" in url and "://" in url:
            scheme, rest = url.split("://", 1)
            credentials, host = rest.rsplit("@", 1)
            if ":" in credentials:
                user = credentials.split(":", 1)[0]
                data["database_url"] = f"{scheme}://{user}:***REDACTED***@{host}"
        return data


# ========================================
# Global Settings Instance
# ========================================

_settings: Settings | None = None


def get_settings() -> Settings:
    """Get global settings instance (singleton).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set global settings instance.

    Args:
        settings: Settings instance to use globally
    """
    global _settings
    _settings = settings


def load_settings_from_file(config_file: Path | str) -> Settings:
    """Load settings from YAML or TOML configuration file.

    Args:
        config_file: Path to configuration file

    Returns:
        Settings instance loaded from file

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file format is invalid

    Example:
        settings = load_settings_from_file("config/prod.yaml")
        set_settings(settings)
    """
    config_path = Path(config_file)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    if suffix in [".yaml", ".yml"]:
        import yaml

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}
    elif suffix == ".toml":
        import tomllib

        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)
    else:
        raise ValueError(f"Unsupported config file format: {suffix}. Use .yaml, .yml, or .toml")

    # Environment variables (and .env) take precedence over the file
    env_settings = Settings()
    env_values = env_settings.model_dump(include=env_settings.model_fields_set)
    return Settings(**{**config_data, **env_values})
