"""Tests for the command line interface."""

from __future__ import annotations

import json
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest

from solrconnector import cli
from solrconnector.connectors.base.connector import StatsSummary
from solrconnector.connectors.base.exceptions import SearchApiSolrException


@pytest.fixture
def connector() -> Iterator[MagicMock]:
    connector = MagicMock()
    with (
        patch("solrconnector.connectors.base.registry.ConnectorRegistry.create", return_value=connector),
        patch("solrconnector.observability.logging.setup_logging"),
    ):
        yield connector


@pytest.fixture(autouse=True)
def _no_env(monkeypatch, tmp_path) -> None:
    # Keep a developer's .env out of the settings.
    monkeypatch.chdir(tmp_path)


class TestCli:
    def test_ping(self, connector: MagicMock, capsys) -> None:
        connector.ping_core.return_value = 0.0125
        connector.ping_server.return_value = False

        assert cli.main(["ping"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output == {"core": 12.5, "server": None}
        connector.close.assert_called_once()

    def test_ping_unreachable(self, connector: MagicMock) -> None:
        connector.ping_core.return_value = False
        connector.ping_server.return_value = False
        assert cli.main(["ping"]) == 1

    def test_version(self, connector: MagicMock, capsys) -> None:
        connector.get_solr_version.return_value = "7.3.1"
        connector.get_solr_branch.return_value = "7.x"
        connector.get_lucene_match_version.return_value = "7.3"

        assert cli.main(["version", "--auto-detect"]) == 0

        connector.get_solr_version.assert_called_once_with(force_auto_detect=True)
        assert json.loads(capsys.readouterr().out)["branch"] == "7.x"

    def test_stats(self, connector: MagicMock, capsys) -> None:
        connector.get_stats_summary.return_value = StatsSummary(core_name="products")
        assert cli.main(["stats"]) == 0
        assert json.loads(capsys.readouterr().out)["core_name"] == "products"

    def test_rest_post(self, connector: MagicMock) -> None:
        connector.rest_request.return_value = {"result": "ok"}
        assert cli.main(["rest", "schema", "--data", "{}"]) == 0
        connector.rest_request.assert_called_once_with("core", "schema", "POST", "{}")

    def test_error_exit_code(self, connector: MagicMock, capsys) -> None:
        connector.get_core_info.side_effect = SearchApiSolrException("Solr endpoint x not found.")

        assert cli.main(["info"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_missing_config(self, connector: MagicMock, tmp_path) -> None:
        assert cli.main(["--config", str(tmp_path / "nope.yaml"), "ping"]) == 1
