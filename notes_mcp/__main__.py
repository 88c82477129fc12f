"""
Notes MCP Server Runner

Usage:
    # Run with HTTP transports (/mcp and /sse)
    python -m notes_mcp

    # One store shared by all users
    python -m notes_mcp --tenancy shared --database-url sqlite:///./notes.db

    # Partition per credential, persisted under ./data
    python -m notes_mcp --data-dir ./data

    # Development mode with hot reload
    python -m notes_mcp --reload --debug
"""

import argparse
import logging
import os
import sys

from loguru import logger

from notes_mcp.exceptions import ConfigurationError
from notes_mcp.settings import MCPSettings


# Logging setup with Loguru
class LoguruInterceptHandler(logging.Handler):
    """Intercept standard logging and route to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = str(record.levelno)

        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO") -> None:
    """Configure logging with Loguru."""
    logger.remove()

    if level == "DEBUG":
        format_str = "<level>{level: <8}</level> | <green>{time:HH:mm:ss}</green> | <cyan>{name}:{line}</cyan> | <level>{message}</level>"
    else:
        format_str = "<level>{level: <8}</level> | <green>{time:HH:mm:ss}</green> | <level>{message}</level>"

    logger.add(
        sys.stdout,
        format=format_str,
        level=level,
        colorize=True,
        diagnose=(level == "DEBUG"),
    )

    # Intercept standard logging
    logging.basicConfig(handlers=[LoguruInterceptHandler()], level=0, force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notes-mcp",
        description="Run the notes MCP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  MCP_SECRET             bearer secret required on every request (unset = open)
  NOTES_TENANCY          partitioned (default) or shared
  NOTES_DATABASE_URL     database for shared tenancy
  NOTES_DATA_DIR         directory of per-partition databases (default ./data, :memory: = in-memory)
  NOTES_MAX_PARTITIONS   most partitions kept open at once (default 1000)
  MCP_CORS_ORIGINS       comma-separated browser origins allowed by CORS
        """,
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8787, help="Port to bind to")
    parser.add_argument("--tenancy", choices=["partitioned", "shared"], help="Storage tenancy")
    parser.add_argument("--database-url", help="Database URL for shared tenancy")
    parser.add_argument("--data-dir", help="Directory for per-partition databases")
    parser.add_argument("--env-file", default=".env", help="Path to environment file")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload on code changes")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode with verbose logging")
    return parser


def apply_overrides(args: argparse.Namespace) -> None:
    """Push CLI overrides into the environment so a reloader process sees them too."""
    overrides = {
        "NOTES_TENANCY": args.tenancy,
        "NOTES_DATABASE_URL": args.database_url,
        "NOTES_DATA_DIR": args.data_dir,
        "MCP_DEBUG": "true" if args.debug else None,
    }
    for key, value in overrides.items():
        if value is not None:
            os.environ[key] = value


def main(argv: list[str] | None = None) -> None:
    """Main entry point for notes_mcp module."""
    args = build_parser().parse_args(argv)

    setup_logging(level="DEBUG" if args.debug else "INFO")
    apply_overrides(args)

    try:
        settings = MCPSettings.from_env(args.env_file)
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    from notes_mcp.worker import run_notes_mcp

    logger.info(
        f"Starting {settings.server.name} v{settings.server.version} on {args.host}:{args.port} "
        f"({settings.storage.tenancy} tenancy)"
    )
    try:
        run_notes_mcp(settings, host=args.host, port=args.port, reload=args.reload, debug=args.debug)
    except KeyboardInterrupt:
        logger.info("Server stopped")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
