"""Base connector interface — Abstract classes and shared plumbing for Solr connectors."""

from solrconnector.connectors.base.connector import SolrConnector, SolrConnectorBase
from solrconnector.connectors.base.registry import ConnectorRegistry

__all__ = ["ConnectorRegistry", "SolrConnector", "SolrConnectorBase"]
