"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from dockerstats.common.config import (
    CollectorSettings,
    DockerSettings,
    LoggingSettings,
    Settings,
    load_config,
)


class TestSettings:
    """Tests for the settings sections."""

    def test_defaults(self, monkeypatch):
        """Test default values."""
        monkeypatch.delenv("DOCKER_HOST", raising=False)
        settings = Settings()

        assert settings.docker.docker_host == "unix:///var/run/docker.sock"
        assert settings.docker.docker_api_version == "1.39"
        assert settings.collector.max_concurrency is None
        assert settings.collector.reconnect_backoff_seconds == 0.25
        assert settings.server.server_port == 8099
        assert settings.server.cache_ttl_seconds == 4.0

    def test_docker_host_from_env(self, monkeypatch):
        """Test DOCKER_HOST is honoured."""
        monkeypatch.setenv("DOCKER_HOST", "tcp://10.0.0.5:2375")
        assert DockerSettings().docker_host == "tcp://10.0.0.5:2375"

    def test_invalid_docker_host(self):
        """Test an unknown scheme is rejected."""
        with pytest.raises(ValidationError):
            DockerSettings(docker_host="ftp://example.com")

    def test_invalid_concurrency(self):
        """Test the concurrency cap must be positive."""
        with pytest.raises(ValidationError):
            CollectorSettings(max_concurrency=0)

    def test_log_level_case_insensitive(self):
        """Test log levels are normalised to upper case."""
        assert LoggingSettings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_format(self):
        """Test unknown log formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingSettings(log_format="xml")


class TestFromYaml:
    """Tests for YAML loading."""

    def test_load(self, tmp_path):
        """Test sections are read from the file."""
        path = tmp_path / "dockerstats.yaml"
        path.write_text(
            "docker:\n"
            "  docker_host: tcp://localhost:2375\n"
            "collector:\n"
            "  max_concurrency: 8\n"
            "server:\n"
            "  server_port: 9000\n"
        )

        settings = load_config(path)

        assert settings.docker.docker_host == "tcp://localhost:2375"
        assert settings.collector.max_concurrency == 8
        assert settings.server.server_port == 9000
        assert settings.server.cache_ttl_seconds == 4.0

    def test_empty_file(self, tmp_path):
        """Test an empty file yields defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert Settings.from_yaml(path).server.server_port == 8099

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path):
        """Test a non-mapping document raises ValueError."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            Settings.from_yaml(path)

    def test_env_fills_fields_missing_from_file(self, tmp_path, monkeypatch):
        """Test env values apply to fields a mentioned section leaves out."""
        monkeypatch.setenv("DOCKER_HOST", "tcp://10.0.0.5:2375")
        monkeypatch.setenv("CACHE_TTL_SECONDS", "9")
        path = tmp_path / "dockerstats.yaml"
        path.write_text("docker:\n  docker_timeout_seconds: 3\nserver:\n  server_port: 9000\n")

        settings = Settings.from_yaml(path)

        assert settings.docker.docker_host == "tcp://10.0.0.5:2375"
        assert settings.docker.docker_timeout_seconds == 3.0
        assert settings.server.server_port == 9000
        assert settings.server.cache_ttl_seconds == 9.0

    def test_file_wins_over_env(self, tmp_path, monkeypatch):
        """Test a value set in the file overrides the environment."""
        monkeypatch.setenv("DOCKER_HOST", "tcp://10.0.0.5:2375")
        path = tmp_path / "dockerstats.yaml"
        path.write_text("docker:\n  docker_host: unix:///run/docker.sock\n")

        assert Settings.from_yaml(path).docker.docker_host == "unix:///run/docker.sock"
