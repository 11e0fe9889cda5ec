"""Tests for endpoint configuration and settings loading."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from solrconnector.config.settings import EndpointConfig, Settings, validate_configuration
from solrconnector.connectors.base.connection import ConnectionManager


class TestEndpointConfig:
    def test_defaults(self) -> None:
        config = EndpointConfig()
        assert config.scheme == "http"
        assert config.host == "localhost"
        assert config.port == 8983
        assert config.path == "/solr"
        assert config.core == ""
        assert (config.timeout, config.index_timeout, config.optimize_timeout) == (5, 5, 10)
        assert config.http_method == "AUTO"

    def test_immutable(self) -> None:
        config = EndpointConfig()
        with pytest.raises(ValidationError):
            config.port = 1234  # type: ignore[misc]

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_range(self, port: int) -> None:
        with pytest.raises(ValidationError):
            EndpointConfig(port=port)

    def test_port_bounds_accepted(self) -> None:
        assert EndpointConfig(port=0).port == 0
        assert EndpointConfig(port=65535).port == 65535

    def test_path_must_start_with_slash(self) -> None:
        with pytest.raises(ValidationError, match='start with "/"'):
            EndpointConfig(path="solr")

    def test_path_trailing_slash_stripped(self) -> None:
        assert EndpointConfig(path="/solr/").path == "/solr"

    def test_empty_path(self) -> None:
        assert EndpointConfig(path="").path == ""

    def test_core_must_not_start_with_slash(self) -> None:
        with pytest.raises(ValidationError, match="must not start"):
            EndpointConfig(core="/products")

    @pytest.mark.parametrize("timeout", [0, 181])
    def test_timeout_range(self, timeout: int) -> None:
        with pytest.raises(ValidationError):
            EndpointConfig(optimize_timeout=timeout)

    @pytest.mark.parametrize("value", ["", "4", "6.2", "7.3.1"])
    def test_version_override_accepted(self, value: str) -> None:
        assert EndpointConfig(solr_version=value).solr_version == value

    def test_version_override_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EndpointConfig(solr_version="six")

    def test_http_method(self) -> None:
        with pytest.raises(ValidationError):
            EndpointConfig(http_method="PUT")


class TestValidateConfiguration:
    def test_valid(self) -> None:
        assert validate_configuration({"host": "solr", "port": 8983, "core": "c"}) == {}

    def test_field_scoped_errors(self) -> None:
        errors = validate_configuration({"port": 70000, "path": "solr", "core": "/c"})
        assert set(errors) == {"port", "path", "core"}
        assert errors["path"] == 'If provided the path has to start with "/".'

    def test_illegal_server_link(self) -> None:
        errors = validate_configuration({"host": "bad\nhost"})
        assert set(errors) == {"scheme", "host", "port", "path", "core"}

    @pytest.mark.parametrize("host", ["solr", "bad\nhost"])
    def test_releases_http_client(self, host: str) -> None:
        with patch.object(ConnectionManager, "close", autospec=True) as close:
            validate_configuration({"host": host})
        close.assert_called_once()


class TestSettings:
    def test_defaults(self, settings: Settings) -> None:
        assert settings.connector.type == "standard"
        assert settings.cache.backend == "memory"
        assert settings.cache.state_key == "solrconnector.endpoint.data"

    def test_env_vars(self, monkeypatch) -> None:
        monkeypatch.setenv("SOLRCONNECTOR_CONNECTOR__TYPE", "basic_auth")
        monkeypatch.setenv("SOLRCONNECTOR_CONNECTOR__ENDPOINT__HOST", "solr.internal")
        monkeypatch.setenv("SOLRCONNECTOR_CACHE__BACKEND", "redis")

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.connector.type == "basic_auth"
        assert settings.connector.endpoint.host == "solr.internal"
        assert settings.cache.backend == "redis"

    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "solr.yaml"
        path.write_text(
            "connector:\n"
            "  type: standard\n"
            "  endpoint:\n"
            "    host: search.local\n"
            "    core: articles\n"
            "    solr_version: '6'\n"
            "observability:\n"
            "  log_format: console\n"
        )

        settings = Settings.from_yaml(path)

        assert settings.connector.endpoint.host == "search.local"
        assert settings.connector.endpoint.core == "articles"
        assert settings.connector.endpoint.solr_version == "6"
        assert settings.observability.log_format == "console"

    def test_from_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")
