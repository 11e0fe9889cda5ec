"""solrconnector — Connector layer between content-indexing applications and Apache Solr."""

from solrconnector.connectors.base.exceptions import SearchApiSolrException

__version__ = "0.1.0"

__all__ = ["SearchApiSolrException", "__version__"]
