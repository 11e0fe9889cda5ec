"""Connector-specific exceptions."""

from __future__ import annotations


class SearchApiSolrException(Exception):
    """Raised when Solr cannot be reached or rejects a request.

    Attributes:
        status_code: HTTP status code of the failed response, if any.
    """

    def __init__(self, message: str, status_code: int | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        if cause is not None:
            self.__cause__ = cause


class ConnectorNotFoundError(Exception):
    """Raised when a requested connector type is not registered."""
