"""Connection Manager — Lazily created HTTP client and the core/server endpoints.

A connector talks to Solr through two endpoints built from the same
``EndpointConfig``:

  - ``core``: the indexed collection, e.g. ``http://localhost:8983/solr/products/``
  - ``server``: the hosting server, e.g. ``http://localhost:8983/solr/``

The core endpoint is registered when the client is created; the server
endpoint is attached the first time something needs it. This module is the
only place that sends HTTP requests.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from solrconnector.config.settings import EndpointConfig
from solrconnector.connectors.base.query import QueryHelper, UpdateQuery

logger = logging.getLogger(__name__)

CORE = "core"
SERVER = "server"

# Above this length AUTO mode sends queries as a form-encoded POST.
MAX_QUERY_STRING_LENGTH = 1024


@dataclass
class Endpoint:
    """One addressable Solr endpoint. ``timeout`` is mutable per request."""

    key: str
    scheme: str
    host: str
    port: int
    path: str
    core: str
    timeout: float

    @property
    def base_uri(self) -> str:
        uri = f"{self.scheme}://{self.host}:{self.port}{self.path}/"
        if self.core:
            uri += f"{self.core}/"
        return uri


class ConnectionManager:
    """Owns the ``httpx.Client`` and the endpoint pair of one connector.

    Not thread-safe: lazy initialization uses an unguarded check-then-set,
    so share an instance only within a single thread.

    Args:
        config: Validated endpoint configuration.
        auth: Optional ``httpx`` auth applied to every request.
        transport: Optional ``httpx`` transport (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: EndpointConfig,
        auth: httpx.Auth | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self._auth = auth
        self._transport = transport
        self._client: httpx.Client | None = None
        self._endpoints: dict[str, Endpoint] = {}
        self._update_query: UpdateQuery | None = None
        self._query_helper: QueryHelper | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    # ── Connection ───────────────────────────────────────────────────────

    def ensure_connected(self) -> httpx.Client:
        """Create the HTTP client and the default core endpoint once."""
        if self._client is None:
            self._client = httpx.Client(auth=self._auth, transport=self._transport)
            self._endpoints[CORE] = self._build_endpoint(CORE, self.config.core)
            logger.debug("Created Solr client for %s", self._endpoints[CORE].base_uri)
        return self._client

    def attach_server_endpoint(self) -> None:
        """Register the server endpoint next to the core endpoint."""
        self.ensure_connected()
        if SERVER not in self._endpoints:
            self._endpoints[SERVER] = self._build_endpoint(SERVER, "")
            logger.debug("Attached Solr server endpoint %s", self._endpoints[SERVER].base_uri)

    def close(self) -> None:
        """Close the HTTP client. A later request reconnects."""
        if self._client is not None:
            self._client.close()
            self._client = None
            self._endpoints.clear()

    def get_endpoint(self, key: str = CORE) -> Endpoint:
        """Return an endpoint by key, attaching the server endpoint on demand.

        Raises:
            ValueError: If ``key`` is neither ``"core"`` nor ``"server"``.
        """
        if key == SERVER:
            self.attach_server_endpoint()
        else:
            self.ensure_connected()
        try:
            return self._endpoints[key]
        except KeyError:
            raise ValueError(f"Unknown Solr endpoint '{key}'") from None

    def _build_endpoint(self, key: str, core: str) -> Endpoint:
        return Endpoint(
            key=key,
            scheme=self.config.scheme,
            host=self.config.host,
            port=self.config.port,
            path=self.config.path,
            core=core,
            timeout=self.config.timeout,
        )

    # ── Addressing ───────────────────────────────────────────────────────

    def resolve_base_uri(self, key: str = CORE) -> str:
        """Base URI of an endpoint, suitable for display and links.

        When Solr is configured as ``localhost`` and the runtime exposes a
        ``SERVER_NAME``, that name replaces ``localhost`` so the link works
        from a browser.
        """
        uri = self.get_endpoint(key).base_uri
        server_name = os.environ.get("SERVER_NAME", "")
        if self.config.host == "localhost" and server_name:
            uri = uri.replace("://localhost", f"://{server_name}", 1)
        return uri

    def server_link(self) -> str:
        """Link to the Solr server.

        Raises:
            ValueError: If the configuration does not form a valid URL.
        """
        uri = self.resolve_base_uri(SERVER)
        try:
            httpx.URL(uri)
        except httpx.InvalidURL as e:
            raise ValueError(f"Illegal Solr server link: {uri}") from e
        return uri

    def core_link(self) -> str:
        """Link to the core page of the Solr admin UI."""
        return f"{self.server_link()}#/{self.config.core}"

    # ── Request primitives ───────────────────────────────────────────────

    def execute(
        self,
        endpoint_key: str,
        handler: str,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        content: str | bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send one request to ``handler`` below the endpoint's base URI.

        The endpoint's current timeout applies unless ``timeout`` is given.
        A query string embedded in ``handler`` is merged with ``params``.
        Status codes are not checked here.

        Raises:
            httpx.HTTPError: On transport failures.
            httpx.InvalidURL: If the endpoint does not form a valid URL.
        """
        endpoint = self.get_endpoint(endpoint_key)
        client = self.ensure_connected()
        path, _, query = handler.lstrip("/").partition("?")
        merged = httpx.QueryParams(query)
        if params:
            merged = merged.merge(params)
        return client.request(
            method,
            endpoint.base_uri + path,
            params=merged or None,
            content=content,
            headers=headers,
            timeout=endpoint.timeout if timeout is None else timeout,
        )

    def execute_query(self, params: dict[str, Any], handler: str = "select") -> httpx.Response:
        """Run a search request against the core, honouring ``http_method``."""
        params = {"wt": "json", **params}
        method = self.config.http_method
        if method == "AUTO":
            method = "POST" if len(urlencode(params, doseq=True)) > MAX_QUERY_STRING_LENGTH else "GET"

        if method == "POST":
            return self.execute(
                CORE,
                handler,
                method="POST",
                content=urlencode(params, doseq=True),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        return self.execute(CORE, handler, params=params)

    def execute_update(self, update: UpdateQuery | None = None) -> httpx.Response:
        """Post buffered update commands to the core using the index timeout.

        The buffer is emptied after the attempt, whether or not it succeeded.
        """
        update = update if update is not None else self.update_query
        try:
            return self.execute(
                CORE,
                "update",
                method="POST",
                params={"wt": "json"},
                content=update.to_json(),
                headers={"Content-Type": "application/json"},
                timeout=self.config.index_timeout,
            )
        finally:
            update.reset()

    # ── Builders ─────────────────────────────────────────────────────────

    @property
    def update_query(self) -> UpdateQuery:
        if self._update_query is None:
            self.ensure_connected()
            self._update_query = UpdateQuery()
        return self._update_query

    @property
    def query_helper(self) -> QueryHelper:
        if self._query_helper is None:
            self._query_helper = QueryHelper()
        return self._query_helper
