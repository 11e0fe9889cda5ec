"""Connector Registry — Maps connector ids to connector classes.

The registry is the one place where a configured connector ``type`` turns
into a connector instance, so new Solr hosting flavors only need to be
registered here.
"""

from __future__ import annotations

import logging
from typing import Any

from solrconnector.config.settings import ConnectorSettings
from solrconnector.connectors.base.connector import SolrConnectorBase
from solrconnector.connectors.base.exceptions import ConnectorNotFoundError

logger = logging.getLogger(__name__)


class ConnectorRegistry:
    """Registry of Solr connector classes.

    Example:
        >>> registry = ConnectorRegistry()
        >>> registry.register(StandardSolrConnector)
        >>> connector = registry.create(ConnectorSettings(type="standard"))
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[SolrConnectorBase]] = {}

    def register(self, connector_class: type[SolrConnectorBase], name: str | None = None) -> None:
        """Register a connector class.

        Args:
            connector_class: The connector class to register.
            name: Id to register under. Defaults to ``connector_class.id``.
        """
        name = name or connector_class.id
        if name in self._classes:
            logger.warning("Overwriting existing connector registration: %s", name)
        self._classes[name] = connector_class
        logger.debug("Registered Solr connector: %s", name)

    def get(self, name: str) -> type[SolrConnectorBase]:
        """Look up a connector class.

        Raises:
            ConnectorNotFoundError: If no connector is registered under this name.
        """
        if name not in self._classes:
            raise ConnectorNotFoundError(
                f"No Solr connector registered with name '{name}'. "
                f"Available connectors: {list(self._classes.keys())}"
            )
        return self._classes[name]

    def create(self, settings: ConnectorSettings, **kwargs: Any) -> SolrConnectorBase:
        """Instantiate the connector selected by ``settings.type``.

        Args:
            settings: Connector type and endpoint configuration.
            **kwargs: Passed to the connector constructor (``cache``, ``transport``).
        """
        connector = self.get(settings.type)(settings.endpoint, **kwargs)
        logger.info("Created Solr connector '%s' for %s", settings.type, settings.endpoint.host)
        return connector

    @property
    def registered_connectors(self) -> list[str]:
        """List all registered connector ids."""
        return list(self._classes.keys())


def create_default_registry() -> ConnectorRegistry:
    """Registry with the built-in connectors."""
    from solrconnector.connectors.basic_auth.connector import BasicAuthSolrConnector
    from solrconnector.connectors.standard.connector import StandardSolrConnector

    registry = ConnectorRegistry()
    registry.register(StandardSolrConnector)
    registry.register(BasicAuthSolrConnector)
    return registry
