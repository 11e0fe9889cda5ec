"""Standard connector — Plain HTTP(S) access to a Solr server.

Usage::

    connector = StandardSolrConnector(EndpointConfig(host="localhost", core="products"))
    connector.ping_core()
    connector.get_solr_version()
"""

from __future__ import annotations

import logging

import httpx

from solrconnector.connectors.base.connector import SolrConnectorBase

logger = logging.getLogger(__name__)


class StandardSolrConnector(SolrConnectorBase):
    """Connector for a Solr server without authentication.

    Credentials present in the configuration are not sent.
    """

    id = "standard"
    label = "Standard"

    def build_auth(self) -> httpx.Auth | None:
        if self.config.username or self.config.password:
            logger.warning("Ignoring Solr credentials; use the 'basic_auth' connector to send them")
        return None
