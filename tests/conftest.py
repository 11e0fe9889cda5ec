"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from solrconnector.cache.manager import CacheManager
from solrconnector.config.settings import EndpointConfig, Settings
from solrconnector.connectors.standard.connector import StandardSolrConnector


class FakeSolr:
    """Routes requests to canned responses and records every request.

    Routes are keyed by URL path (without query string). A route value is
    either a JSON-serializable payload, an ``httpx.Response`` or a callable
    taking the request.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": {"msg": "Not Found", "code": 404}})
        if callable(route):
            route = route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def endpoint_config() -> EndpointConfig:
    return EndpointConfig(
        host="localhost",
        port=8983,
        path="/solr",
        core="products",
        timeout=5,
        index_timeout=7,
        optimize_timeout=30,
    )


@pytest.fixture
def fake_solr() -> FakeSolr:
    return FakeSolr()


@pytest.fixture
def cache() -> CacheManager:
    return CacheManager()


@pytest.fixture
def make_connector(
    endpoint_config: EndpointConfig, fake_solr: FakeSolr, cache: CacheManager
) -> Callable[..., StandardSolrConnector]:
    """Factory for connectors wired to ``fake_solr`` and the shared ``cache``."""

    def _make(**overrides: Any) -> StandardSolrConnector:
        config = endpoint_config.model_copy(update=overrides) if overrides else endpoint_config
        return StandardSolrConnector(config, cache=cache, transport=fake_solr.transport)

    return _make


@pytest.fixture
def connector(make_connector: Callable[..., StandardSolrConnector]) -> StandardSolrConnector:
    return make_connector()


@pytest.fixture
def core_info() -> dict[str, Any]:
    """Sample response of the core's admin/system handler."""
    return {
        "responseHeader": {"status": 0, "QTime": 2},
        "core": {"schema": "drupal-4.1.1-solr-7.x", "name": "products"},
        "lucene": {
            "solr-spec-version": "7.3.1",
            "solr-impl-version": "7.3.1 ae0705edb59eaa567fe13ed3a222fdadc7153680",
            "lucene-spec-version": "7.3.1",
        },
    }


@pytest.fixture
def server_info() -> dict[str, Any]:
    """Sample response of the server's admin/info/system handler."""
    return {
        "responseHeader": {"status": 0, "QTime": 4},
        "mode": "std",
        "lucene": {"solr-spec-version": "6.6.2", "lucene-spec-version": "6.6.2"},
    }
