"""Tests for environment configuration and the command line entry point."""

from pathlib import Path

import pytest

import notes_mcp.__main__ as cli
from notes_mcp.exceptions import ConfigurationError
from notes_mcp.settings import MCPSettings

ENV_KEYS = [
    "MCP_SECRET",
    "MCP_DEBUG",
    "MCP_SERVER_NAME",
    "MCP_SERVER_VERSION",
    "MCP_MIDDLEWARE_ENABLE_LOGGING",
    "MCP_MIDDLEWARE_LOG_LEVEL",
    "MCP_MIDDLEWARE_MASK_ERROR_DETAILS",
    "NOTES_TENANCY",
    "NOTES_DATABASE_URL",
    "NOTES_DATA_DIR",
    "NOTES_EMPTY_MEANS_UNSET",
    "NOTES_MAX_PARTITIONS",
    "MCP_CORS_ORIGINS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestFromEnv:
    def test_defaults(self):
        settings = MCPSettings.from_env(None)

        assert settings.server.name == "Notes API"
        assert settings.server.version == "1.0.0"
        assert settings.auth.secret is None
        assert settings.storage.tenancy == "partitioned"
        assert settings.storage.data_dir == Path("data")
        assert settings.storage.max_partitions == 1000
        assert settings.storage.empty_means_unset is True
        assert settings.http.cors_origins == []
        assert settings.middleware.enable_logging is True
        assert settings.debug is False

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("MCP_SECRET", "s3cret")
        monkeypatch.setenv("NOTES_TENANCY", "Shared")
        monkeypatch.setenv("NOTES_DATABASE_URL", "sqlite:///shared.db")
        monkeypatch.setenv("NOTES_DATA_DIR", "/var/notes")
        monkeypatch.setenv("NOTES_EMPTY_MEANS_UNSET", "no")
        monkeypatch.setenv("NOTES_MAX_PARTITIONS", "50")
        monkeypatch.setenv("MCP_CORS_ORIGINS", "https://a.example, https://b.example,")
        monkeypatch.setenv("MCP_MIDDLEWARE_LOG_LEVEL", "debug")
        monkeypatch.setenv("MCP_MIDDLEWARE_MASK_ERROR_DETAILS", "1")

        settings = MCPSettings.from_env(None)

        assert settings.auth.secret == "s3cret"
        assert settings.storage.tenancy == "shared"
        assert settings.storage.database_url == "sqlite:///shared.db"
        assert settings.storage.data_dir == Path("/var/notes")
        assert settings.storage.empty_means_unset is False
        assert settings.storage.max_partitions == 50
        assert settings.http.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.middleware.log_level == "DEBUG"
        assert settings.middleware.mask_error_details is True

    def test_empty_secret_disables_gate(self, monkeypatch):
        monkeypatch.setenv("MCP_SECRET", "")

        assert MCPSettings.from_env(None).auth.secret is None

    def test_memory_data_dir(self, monkeypatch):
        monkeypatch.setenv("NOTES_DATA_DIR", ":memory:")

        assert MCPSettings.from_env(None).storage.data_dir is None

    @pytest.mark.parametrize("value", ["many", "0"])
    def test_bad_max_partitions(self, monkeypatch, value):
        monkeypatch.setenv("NOTES_MAX_PARTITIONS", value)

        with pytest.raises(ConfigurationError):
            MCPSettings.from_env(None)

    def test_bad_tenancy(self, monkeypatch):
        monkeypatch.setenv("NOTES_TENANCY", "per-user")

        with pytest.raises(ConfigurationError):
            MCPSettings.from_env(None)

    def test_env_file_does_not_override_environment(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("MCP_SERVER_NAME=From File\nMCP_SERVER_VERSION=9.9.9\n")
        monkeypatch.setenv("MCP_SERVER_NAME", "From Env")
        # load_dotenv writes into os.environ; let monkeypatch restore it
        monkeypatch.setenv("MCP_SERVER_VERSION", "")
        monkeypatch.delenv("MCP_SERVER_VERSION")

        settings = MCPSettings.from_env(env_file)

        assert settings.server.name == "From Env"
        assert settings.server.version == "9.9.9"


class TestCli:
    def test_parser_defaults(self):
        args = cli.build_parser().parse_args([])

        assert (args.host, args.port) == ("127.0.0.1", 8787)
        assert args.tenancy is None
        assert args.reload is False

    def test_overrides_reach_settings(self, monkeypatch):
        # Registered with monkeypatch so the values apply_overrides writes are undone
        for key in ("NOTES_TENANCY", "NOTES_DATABASE_URL", "MCP_DEBUG"):
            monkeypatch.setenv(key, "")
        args = cli.build_parser().parse_args(["--tenancy", "shared", "--database-url", "sqlite://", "--debug"])
        cli.apply_overrides(args)

        settings = MCPSettings.from_env(None)

        assert settings.storage.tenancy == "shared"
        assert settings.storage.database_url == "sqlite://"
        assert settings.debug is True

    def test_main_runs_server(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cli, "setup_logging", lambda level: None)
        monkeypatch.setattr("notes_mcp.worker.run_notes_mcp", lambda settings, **kw: calls.append((settings, kw)))
        monkeypatch.setenv("NOTES_TENANCY", "partitioned")

        cli.main(["--port", "9000", "--env-file", ""])

        settings, kwargs = calls[0]
        assert settings.storage.tenancy == "partitioned"
        assert kwargs == {"host": "127.0.0.1", "port": 9000, "reload": False, "debug": False}

    def test_main_exits_on_bad_config(self, monkeypatch):
        monkeypatch.setattr(cli, "setup_logging", lambda level: None)
        monkeypatch.setenv("NOTES_TENANCY", "bogus")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--env-file", ""])

        assert exc_info.value.code == 1
