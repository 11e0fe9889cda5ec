"""Basic auth connector — Solr behind HTTP basic authentication."""

from __future__ import annotations

import httpx

from solrconnector.config.settings import EndpointConfig
from solrconnector.connectors.base.connector import SolrConnectorBase


class BasicAuthSolrConnector(SolrConnectorBase):
    """Connector sending ``username``/``password`` with every request."""

    id = "basic_auth"
    label = "Basic Auth"

    def validate_config(self, config: EndpointConfig) -> None:
        if not config.username:
            raise ValueError("The basic_auth connector requires a username.")

    def build_auth(self) -> httpx.Auth | None:
        return httpx.BasicAuth(self.config.username, self.config.password)
