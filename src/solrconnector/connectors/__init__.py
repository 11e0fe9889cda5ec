"""Solr connector variants.

Built-in connectors:
  - standard: Plain HTTP(S) connection to a Solr server
  - basic_auth: Solr server protected by HTTP basic authentication

Subclass ``SolrConnectorBase`` to support another Solr hosting flavor.
"""
