"""Base Solr connector — Interface and shared implementation for all variants.

A connector is responsible for:
  1. Connecting lazily to the core and server endpoints
  2. Fetching and caching admin metadata (system info, luke)
  3. Negotiating the Solr version
  4. Probing liveness of the core and the server
  5. Dispatching REST requests for schema/config management
  6. Summarizing core statistics
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, ClassVar

import httpx
import phpserialize
from pydantic import BaseModel, Field

from solrconnector.cache.manager import CacheManager
from solrconnector.config.settings import EndpointConfig
from solrconnector.connectors.base import versions
from solrconnector.connectors.base.connection import CORE, SERVER, ConnectionManager
from solrconnector.connectors.base.exceptions import SearchApiSolrException
from solrconnector.connectors.base.metadata import MetadataCache
from solrconnector.connectors.base.query import QueryHelper, UpdateQuery
from solrconnector.utils.formatting import format_interval

logger = logging.getLogger(__name__)

# Added to measured ping times so a reachable endpoint never reports 0.
PING_EPSILON = 1e-6

_LEADING_INT = re.compile(r"^\s*(-?\d+)")


def _leading_int(value: Any) -> int:
    """Integer prefix of a stats value; Solr reports e.g. ``"15000ms"``."""
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


class ConnectorHealth(BaseModel):
    """Health status of a Solr connector."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of the core ping in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of the check")
    message: str | None = Field(default=None, description="Additional health message")


class StatsSummary(BaseModel):
    """Summary of a core's update handler, size and schema.

    Every field is None when Solr returned no statistics.
    """

    pending_docs: int | None = Field(default=None, description="Documents waiting for a commit")
    autocommit_time_seconds: float | None = Field(default=None, description="Autocommit max time in seconds")
    autocommit_time: str | None = Field(default=None, description="Autocommit max time, human readable")
    deletes_by_id: int | None = Field(default=None, description="Pending deletes by id")
    deletes_by_query: int | None = Field(default=None, description="Pending deletes by query")
    deletes_total: int | None = Field(default=None, description="Sum of both delete counts")
    schema_version: str | None = Field(default=None, description="Full schema version string")
    core_name: str | None = Field(default=None, description="Name reported by the core")
    index_size: str | None = Field(default=None, description="Index size as reported by replication")


class SolrConnector(ABC):
    """Abstract interface of a Solr connector.

    Callers depend on this capability set only; which variant is used is
    decided by configuration (see ``ConnectorRegistry``).
    """

    id: ClassVar[str]
    label: ClassVar[str]

    @abstractmethod
    def connect(self) -> None:
        """Make sure the HTTP client and the core endpoint exist."""

    @abstractmethod
    def attach_server_endpoint(self) -> None:
        """Make sure the server endpoint exists next to the core endpoint."""

    @abstractmethod
    def rest_request(self, endpoint_key: str, path: str, method: str = "GET", command_json: str = "") -> Any:
        """Send a REST request and return the decoded JSON response.

        Raises:
            SearchApiSolrException: On transport failures or reported errors.
        """

    @abstractmethod
    def ping_core(self) -> float | bool:
        """Latency of a core ping in seconds, or False if unreachable."""

    @abstractmethod
    def ping_server(self) -> float | bool:
        """Latency of a server ping in seconds, or False if unreachable."""

    @abstractmethod
    def get_solr_version(self, force_auto_detect: bool = False) -> str:
        """Full ``major.minor.patch`` Solr version."""

    @abstractmethod
    def get_stats_summary(self) -> StatsSummary:
        """Statistics of the core.

        Raises:
            SearchApiSolrException: If the core cannot be reached.
        """


class SolrConnectorBase(SolrConnector):
    """Implementation shared by all connector variants.

    Subclasses set ``id``/``label`` and may override ``build_auth()`` and
    ``validate_config()``.

    Args:
        config: Endpoint configuration.
        cache: Store for admin metadata. Defaults to a private in-memory
            store; pass a shared ``CacheManager`` to share metadata across
            connector instances or processes.
        transport: Optional ``httpx`` transport, mainly for tests.
    """

    def __init__(
        self,
        config: EndpointConfig | None = None,
        cache: CacheManager | MetadataCache | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or EndpointConfig()
        self.validate_config(self.config)
        self.connection = ConnectionManager(self.config, auth=self.build_auth(), transport=transport)
        self.metadata = cache if isinstance(cache, MetadataCache) else MetadataCache(cache)
        # Handlers fetched in this process: (base_uri, handler) -> payload.
        self._previous_calls: dict[tuple[str, str], Any] = {}
        # Handlers whose last fetch failed in this process.
        self._failed_calls: dict[tuple[str, str], SearchApiSolrException] = {}

    def validate_config(self, config: EndpointConfig) -> None:
        """Hook for variant-specific configuration requirements.

        Raises:
            ValueError: If the configuration is unusable for this variant.
        """

    def build_auth(self) -> httpx.Auth | None:
        """Authentication applied to every request."""
        return None

    # ── Connection ───────────────────────────────────────────────────────

    def connect(self) -> None:
        self.connection.ensure_connected()

    def attach_server_endpoint(self) -> None:
        self.connection.attach_server_endpoint()

    def close(self) -> None:
        self.connection.close()

    def get_server_link(self) -> str:
        return self.connection.server_link()

    def get_core_link(self) -> str:
        return self.connection.core_link()

    @property
    def update_query(self) -> UpdateQuery:
        return self.connection.update_query

    @property
    def query_helper(self) -> QueryHelper:
        return self.connection.query_helper

    # ── Metadata ─────────────────────────────────────────────────────────

    def get_server_info(self, reset: bool = False) -> dict[str, Any]:
        """System information of the Solr server (``admin/info/system``)."""
        return self.get_data_from_handler(SERVER, "admin/info/system", reset)

    def get_core_info(self, reset: bool = False) -> dict[str, Any]:
        """System information of the Solr core (``admin/system``)."""
        return self.get_data_from_handler(CORE, "admin/system", reset)

    def get_luke(self) -> dict[str, Any]:
        """Index meta-data from Luke. Never served from cache."""
        return self.get_data_from_handler(CORE, "admin/luke", reset=True)

    def get_data_from_handler(self, endpoint_key: str, handler: str, reset: bool = False) -> Any:
        """Fetch an admin handler's response, cached per endpoint URI and handler.

        Args:
            endpoint_key: ``"core"`` or ``"server"``.
            handler: Handler path below the endpoint, e.g. ``"admin/system"``.
            reset: Ask Solr even if a response is cached.

        Returns:
            The decoded JSON response.

        Raises:
            SearchApiSolrException: If the endpoint cannot be reached.
        """
        endpoint_uri = self.connection.get_endpoint(endpoint_key).base_uri
        key = (endpoint_uri, handler)

        if not reset:
            previous = self._previous_calls.get(key)
            if previous is not None:
                return previous
            cached = self.metadata.get(endpoint_uri, handler)
            if cached is not None:
                logger.debug("Solr metadata cache hit: %s%s", endpoint_uri, handler)
                self._previous_calls[key] = cached
                return cached
            if key in self._failed_calls:
                # Don't retry a failed handler within one process.
                raise self._failed_calls[key]

        try:
            response = self.connection.execute(endpoint_key, handler, params={"wt": "json"})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            error = SearchApiSolrException(f"Solr endpoint {endpoint_uri} not found.", status_code, e)
            # A payload fetched earlier stays usable.
            self._failed_calls[key] = error
            logger.warning("Failed to fetch %s from %s: %s", handler, endpoint_uri, e)
            raise error from e

        self.metadata.set(endpoint_uri, handler, data)
        self._previous_calls[key] = data
        self._failed_calls.pop(key, None)
        return data

    def reset_metadata(self) -> None:
        """Forget cached metadata of both endpoints, in process and durably."""
        for key in (CORE, SERVER):
            self.metadata.invalidate(self.connection.get_endpoint(key).base_uri)
        self._previous_calls.clear()
        self._failed_calls.clear()

    # ── Versions ─────────────────────────────────────────────────────────

    def get_solr_version(self, force_auto_detect: bool = False) -> str:
        """Full Solr version.

        A configured ``solr_version`` override wins unless
        ``force_auto_detect`` is set. Otherwise the version is read from the
        core info, then the server info; ``"0.0.0"`` if neither answers.
        """
        if not force_auto_detect and self.config.solr_version:
            return versions.normalize_version(self.config.solr_version)

        info: dict[str, Any] = {}
        try:
            info = self.get_core_info()
        except SearchApiSolrException:
            try:
                info = self.get_server_info()
            except SearchApiSolrException:
                logger.info("Solr version could not be detected")

        try:
            return str(info["lucene"]["solr-spec-version"])
        except (KeyError, TypeError):
            return versions.UNKNOWN_VERSION

    def get_solr_major_version(self, version: str = "") -> str:
        return versions.major_version(version or self.get_solr_version())

    def get_solr_branch(self, version: str = "") -> str:
        return versions.branch(version or self.get_solr_version())

    def get_lucene_match_version(self, version: str = "") -> str:
        return versions.lucene_match_version(version or self.get_solr_version())

    def get_schema_version_string(self, reset: bool = False) -> str:
        """Full schema name of the core, e.g. ``"drupal-4.1.1-solr-6.x"``."""
        try:
            return str(self.get_core_info(reset)["core"]["schema"])
        except (KeyError, TypeError) as e:
            raise SearchApiSolrException("Solr core info does not contain a schema name.", cause=e) from e

    def get_schema_version(self, reset: bool = False) -> str:
        """Schema version: the schema name after its first ``-``."""
        try:
            return versions.schema_version(self.get_schema_version_string(reset))
        except ValueError as e:
            raise SearchApiSolrException(str(e), cause=e) from e

    # ── Health ───────────────────────────────────────────────────────────

    def ping_core(self) -> float | bool:
        return self._do_ping(CORE, "admin/ping")

    def ping_server(self) -> float | bool:
        return self._do_ping(SERVER, "admin/info/system")

    def _do_ping(self, endpoint_key: str, handler: str) -> float | bool:
        try:
            start = time.monotonic()
            response = self.connection.execute(endpoint_key, handler, params={"wt": "json", "omitHeader": "true"})
            if response.status_code == 200:
                return (time.monotonic() - start) + PING_EPSILON
            logger.debug("Ping of %s returned HTTP %s", handler, response.status_code)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Ping of %s failed: %s", handler, e)
        return False

    def health_check(self) -> ConnectorHealth:
        """Ping the core and the server and summarize the result."""
        now = datetime.now(UTC).isoformat()
        core_latency = self.ping_core()
        if core_latency is not False:
            return ConnectorHealth(
                status="healthy",
                latency_ms=int(core_latency * 1000),
                last_check=now,
                message=f"Core reachable at {self.connection.resolve_base_uri(CORE)}",
            )
        if self.ping_server() is not False:
            return ConnectorHealth(
                status="degraded",
                last_check=now,
                message=f"Server reachable but core '{self.config.core}' is not",
            )
        return ConnectorHealth(
            status="unhealthy",
            last_check=now,
            message=f"Solr server unreachable at {self.connection.resolve_base_uri(SERVER)}",
        )

    # ── Statistics ───────────────────────────────────────────────────────

    def get_stats_summary(self) -> StatsSummary:
        """Update handler, core and replication statistics of the core.

        Solr's mbeans handler is asked for PHP-serialized output (``wt=phps``).
        """
        self.connect()
        core_uri = self.connection.get_endpoint(CORE).base_uri
        try:
            response = self.connection.execute(CORE, "admin/mbeans", params={"stats": "true", "wt": "phps"})
            response.raise_for_status()
            stats = phpserialize.loads(response.content, decode_strings=True) if response.content else {}
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            raise SearchApiSolrException(f"Solr server core {core_uri} not found.", status_code, e) from e

        if not stats:
            return StatsSummary()

        try:
            mbeans = stats["solr-mbeans"]
            update_stats = mbeans["UPDATEHANDLER"]["updateHandler"]["stats"]
            max_time = _leading_int(update_stats["autocommit maxTime"])
            deletes_by_id = _leading_int(update_stats["deletesById"])
            deletes_by_query = _leading_int(update_stats["deletesByQuery"])
            pending_docs = _leading_int(update_stats["docsPending"])
            core_name = str(mbeans["CORE"]["core"]["stats"]["coreName"])
            index_size = str(mbeans["QUERYHANDLER"]["/replication"]["stats"]["indexSize"])
        except (KeyError, TypeError) as e:
            raise SearchApiSolrException(f"Unexpected statistics format from {core_uri}: missing {e}", cause=e) from e

        return StatsSummary(
            pending_docs=pending_docs,
            autocommit_time_seconds=max_time / 1000,
            autocommit_time=format_interval(max_time / 1000),
            deletes_by_id=deletes_by_id,
            deletes_by_query=deletes_by_query,
            deletes_total=deletes_by_id + deletes_by_query,
            schema_version=self.get_schema_version_string(reset=True),
            core_name=core_name,
            index_size=index_size,
        )

    # ── REST ─────────────────────────────────────────────────────────────

    def core_rest_get(self, path: str) -> Any:
        return self.rest_request(CORE, path)

    def core_rest_post(self, path: str, command_json: str = "") -> Any:
        return self.rest_request(CORE, path, "POST", command_json)

    def server_rest_get(self, path: str) -> Any:
        return self.rest_request(SERVER, path)

    def server_rest_post(self, path: str, command_json: str = "") -> Any:
        return self.rest_request(SERVER, path, "POST", command_json)

    def rest_request(self, endpoint_key: str, path: str, method: str = "GET", command_json: str = "") -> Any:
        """Send a REST request to an endpoint and return the decoded response.

        The request runs with the optimize timeout; the endpoint's own
        timeout is restored afterwards. Failed POSTs may have left the server
        in an unknown state; nothing is rolled back.

        Args:
            endpoint_key: ``"core"`` or ``"server"``.
            path: Handler path below the endpoint's base URI.
            method: ``"GET"`` or ``"POST"``.
            command_json: Raw JSON body for POST requests.

        Raises:
            SearchApiSolrException: If the request fails or Solr reports errors.
        """
        self.connect()
        headers = {"Accept": "application/json"}
        content = None
        if method == "POST":
            headers["Content-Type"] = "application/json"
            content = command_json

        endpoint = self.connection.get_endpoint(endpoint_key)
        timeout = endpoint.timeout
        # TODO: use separate timeouts for schema, config and collection requests.
        endpoint.timeout = self.config.optimize_timeout
        try:
            response = self.connection.execute(endpoint_key, path, method=method, content=content, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SearchApiSolrException(
                f"REST request {method} {path} to Solr endpoint {endpoint.base_uri} failed: {e}", cause=e
            ) from e
        finally:
            endpoint.timeout = timeout

        try:
            output = response.json()
        except ValueError:
            output = None

        # Schema and config APIs report rejected commands with a 400 and an "errors" list.
        if isinstance(output, dict) and output.get("errors"):
            logger.warning("Solr rejected REST request %s %s: %s", method, path, output["errors"])
            raise SearchApiSolrException(
                "Error trying to send a REST request.\nError message(s):" + json.dumps(output["errors"], indent=2),
                response.status_code,
            )
        if response.is_error or output is None:
            raise SearchApiSolrException(
                f"REST request {method} {path} to Solr endpoint {endpoint.base_uri} failed "
                f"with HTTP {response.status_code}.",
                response.status_code,
            )
        return output
