"""Configuration management for the Library Management data layer.

Every setting has a default that reproduces the classic desktop behaviour:
both database files live in the working directory and nothing needs to be
set in the environment. Overrides come from ``LIBRARY_*`` environment
variables or a local ``.env`` file.

Borrowing policy (the ten-book limit, the first visitor id, the fixed
administrator credential) is not configurable; those live as constants
next to the code that enforces them.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LibraryConfig(BaseSettings):
    """Library configuration.

    This configuration class covers:
    1. Server metadata for the MCP tool surface
    2. Location and write strategy of the two JSON database files
    3. Logging and observability switches
    """

    model_config = SettingsConfigDict(
        # Use LIBRARY_ prefix for all env vars
        env_prefix="LIBRARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="library-management",
        description="MCP server name used in protocol handshake",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Server version for capability negotiation",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    # === Storage Configuration ===

    data_dir: Path = Field(
        default=Path("."),
        description="Directory holding the book and visitor database files",
    )

    book_database_file: str = Field(
        default="BookDatabase.json",
        description="File name of the book catalog database",
        min_length=1,
    )

    visitor_database_file: str = Field(
        default="VisitorDatabase.json",
        description="File name of the visitor roster database",
        min_length=1,
    )

    atomic_writes: bool = Field(
        default=True,
        description="Write to a temporary file and rename it over the database file",
    )

    reconcile_on_startup: bool = Field(
        default=True,
        description="Rebuild copy status from active borrow records when the stores open",
    )

    # === Development Configuration ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    observability_enabled: bool = Field(
        default=False,
        description="Configure logfire tracing of circulation operations",
    )

    # === Validation Methods ===

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: Path) -> Path:
        """Ensure the data directory exists.

        The stores rewrite their files on every mutation, so the
        directory has to be there before the first write.
        """
        abs_path = v.absolute()
        abs_path.mkdir(parents=True, exist_ok=True)

        if not abs_path.is_dir():
            raise ValueError(f"Data directory {abs_path} is not accessible")

        return abs_path

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        """Validate server name length."""
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    @field_validator("book_database_file", "visitor_database_file")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """Database files are plain names inside data_dir, never paths."""
        if Path(v).name != v:
            raise ValueError(f"'{v}' must be a file name, not a path")
        return v

    # === Computed Properties ===

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.log_level == "DEBUG"

    @property
    def book_database_path(self) -> Path:
        """Full path of the book catalog file."""
        return self.data_dir / self.book_database_file

    @property
    def visitor_database_path(self) -> Path:
        """Full path of the visitor roster file."""
        return self.data_dir / self.visitor_database_file

    @property
    def server_info(self) -> dict[str, str]:
        """Get server information for the MCP handshake."""
        return {
            "name": self.server_name,
            "version": self.server_version,
        }


# === Global Configuration Instance ===


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: LibraryConfig | None = None


def get_config() -> LibraryConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = LibraryConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def set_config(config: LibraryConfig) -> None:
    """Install an explicitly built configuration (tests, embedding apps)."""
    _ConfigStore._instance = config  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
