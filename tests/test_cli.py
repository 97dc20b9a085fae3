"""Tests for the dockerstats CLI."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console
from typer.testing import CliRunner

from dockerstats import cli
from dockerstats.docker_handler import ContainerError
from dockerstats.models import StatsEntry

runner = CliRunner()


@pytest.fixture
def fake_exporter(monkeypatch):
    """Replace the Exporter the CLI builds."""
    exporter = MagicMock()
    exporter.list = AsyncMock(
        return_value=[
            StatsEntry(
                container_id="abc123def4567890",
                container_name="/web",
                cpu_usage_percentage=40.0,
                kubernetes_labels={
                    "kubernetes_pod_name": "web-0",
                    "kubernetes_pod_namespace": "default",
                },
            )
        ]
    )
    exporter.close = AsyncMock()
    monkeypatch.setattr(cli, "Exporter", MagicMock(return_value=exporter))
    monkeypatch.setattr(cli, "setup_logging", MagicMock())
    monkeypatch.setattr(cli, "console", Console(width=200))
    return exporter


class TestListCommand:
    """Tests for `dockerstats list`."""

    def test_json_output(self, fake_exporter):
        """Test --json prints the /stats body."""
        result = runner.invoke(cli.app, ["list", "--json"])

        assert result.exit_code == 0
        body = json.loads(result.stdout)
        assert body["stats"][0]["container_id"] == "abc123def4567890"
        fake_exporter.close.assert_awaited_once()

    def test_table_output(self, fake_exporter):
        """Test the table shows the short ID and pod."""
        result = runner.invoke(cli.app, ["list"])

        assert result.exit_code == 0
        assert "abc123def456" in result.stdout
        assert "default/web-0" in result.stdout

    def test_listing_failure(self, fake_exporter):
        """Test a daemon failure exits non-zero and still closes the exporter."""
        fake_exporter.list.side_effect = ContainerError("Failed to list containers")

        result = runner.invoke(cli.app, ["list"])

        assert result.exit_code == 1
        assert "Failed to list containers" in result.stdout
        fake_exporter.close.assert_awaited_once()

    def test_missing_config(self, fake_exporter, tmp_path):
        """Test a missing config file exits non-zero."""
        result = runner.invoke(cli.app, ["list", "--config", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.stdout


class TestHumanBytes:
    """Tests for byte formatting."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0, "0.0B"), (1536, "1.5KiB"), (3 * 1024**3, "3.0GiB")],
    )
    def test_units(self, value, expected):
        assert cli._human_bytes(value) == expected
