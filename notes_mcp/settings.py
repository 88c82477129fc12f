"""Configuration models and helpers for the notes MCP server."""

# Standard library imports
import os
from pathlib import Path
from typing import Any, Literal

# Third-party imports
import dotenv
from pydantic import BaseModel, Field

from notes_mcp.exceptions import ConfigurationError

Tenancy = Literal["partitioned", "shared"]

# NOTES_DATA_DIR value that keeps partitions in memory
MEMORY_DATA_DIR = ":memory:"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(env: dict[str, Any], key: str, default: bool) -> bool:
    value = env.get(key)
    if value is None or value == "":
        return default
    return str(value).strip().lower() in _TRUTHY


class ServerSettings(BaseModel):
    """Server identity reported to MCP clients."""

    name: str = Field(default="Notes API", description="Server name")
    version: str = Field(default="1.0.0", description="Server version")
    title: str | None = Field(default=None, description="Server title for display")
    instructions: str | None = Field(default=None, description="Server instructions")


class MiddlewareSettings(BaseModel):
    enable_logging: bool = Field(default=True, description="Log every request")
    log_level: str = Field(default="INFO", description="Level for request logs")
    mask_error_details: bool = Field(default=False, description="Hide internal error messages")


class HTTPSettings(BaseModel):
    cors_origins: list[str] = Field(default_factory=list, description="Origins allowed by CORS; empty disables it")


class AuthSettings(BaseModel):
    secret: str | None = Field(default=None, description="Bearer secret; unset disables the check")


class StorageSettings(BaseModel):
    tenancy: Tenancy = Field(default="partitioned", description="Partition per credential or one shared store")
    database_url: str = Field(default="sqlite:///./notes.db", description="Shared store database URL")
    data_dir: Path | None = Field(
        default=Path("data"), description="Directory for per-partition databases; None keeps them in memory"
    )
    max_partitions: int = Field(default=1000, ge=1, description="Most partitions kept open at once")
    empty_means_unset: bool = Field(default=True, description="Treat empty update values as absent")


class MCPSettings(BaseModel):
    """High-level notes server configuration.

    Will override with values from .env file if present.
    """

    server: ServerSettings = Field(default_factory=ServerSettings)
    middleware: MiddlewareSettings = Field(default_factory=MiddlewareSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    debug: bool = Field(default=False, description="Debug mode")

    @classmethod
    def from_env(cls, env_file: str | Path | None = ".env") -> "MCPSettings":
        """Build settings from the process environment, after loading ``env_file``."""
        if env_file:
            # Existing environment wins over the file
            dotenv.load_dotenv(env_file, override=False)
        env: dict[str, Any] = dict(os.environ)

        tenancy = env.get("NOTES_TENANCY", "partitioned").strip().lower()
        if tenancy not in ("partitioned", "shared"):
            raise ConfigurationError(f"NOTES_TENANCY must be 'partitioned' or 'shared', got {tenancy!r}")

        data_dir = env.get("NOTES_DATA_DIR") or "data"
        try:
            max_partitions = int(env.get("NOTES_MAX_PARTITIONS") or 1000)
        except ValueError as e:
            raise ConfigurationError(f"NOTES_MAX_PARTITIONS must be an integer: {e}") from e
        if max_partitions < 1:
            raise ConfigurationError("NOTES_MAX_PARTITIONS must be at least 1")

        cors_origins = [o.strip() for o in env.get("MCP_CORS_ORIGINS", "").split(",") if o.strip()]

        return cls(
            server=ServerSettings(
                name=env.get("MCP_SERVER_NAME") or "Notes API",
                version=env.get("MCP_SERVER_VERSION") or "1.0.0",
                title=env.get("MCP_SERVER_TITLE"),
                instructions=env.get("MCP_SERVER_INSTRUCTIONS"),
            ),
            middleware=MiddlewareSettings(
                enable_logging=_env_bool(env, "MCP_MIDDLEWARE_ENABLE_LOGGING", True),
                log_level=env.get("MCP_MIDDLEWARE_LOG_LEVEL", "INFO").upper(),
                mask_error_details=_env_bool(env, "MCP_MIDDLEWARE_MASK_ERROR_DETAILS", False),
            ),
            auth=AuthSettings(secret=env.get("MCP_SECRET") or None),
            http=HTTPSettings(cors_origins=cors_origins),
            storage=StorageSettings(
                tenancy=tenancy,
                database_url=env.get("NOTES_DATABASE_URL") or "sqlite:///./notes.db",
                data_dir=None if data_dir == MEMORY_DATA_DIR else Path(data_dir),
                max_partitions=max_partitions,
                empty_means_unset=_env_bool(env, "NOTES_EMPTY_MEANS_UNSET", True),
            ),
            debug=_env_bool(env, "MCP_DEBUG", False),
        )
