"""Metadata cache — Admin handler responses keyed by endpoint URI and handler.

Every payload lives inside one durable entry::

    {"http://localhost:8983/solr/products/": {"admin/system": {...}}}

Connectors pointing at different servers therefore never collide, and
connectors pointing at the same server share what was fetched.

Concurrent writers race on the single entry and the last writer wins. The
payloads are idempotent reads of server state, so no locking is done.
"""

from __future__ import annotations

import logging
from typing import Any

from solrconnector.cache.manager import CacheManager

logger = logging.getLogger(__name__)

DEFAULT_STATE_KEY = "solrconnector.endpoint.data"


class MetadataCache:
    """Get/set/invalidate view over the durable endpoint data entry.

    Args:
        store: Backing key-value store.
        state_key: Key of the entry holding all endpoint data.
    """

    def __init__(self, store: CacheManager | None = None, state_key: str | None = None) -> None:
        self.store = store or CacheManager()
        self.state_key = state_key or self.store.settings.state_key or DEFAULT_STATE_KEY

    def _load(self) -> dict[str, dict[str, Any]]:
        data = self.store.get(self.state_key)
        return data if isinstance(data, dict) else {}

    def get(self, base_uri: str, handler: str) -> Any | None:
        """Return the cached payload or None."""
        return self._load().get(base_uri, {}).get(handler)

    def set(self, base_uri: str, handler: str, payload: Any) -> None:
        """Store a payload, keeping everything else in the entry."""
        data = self._load()
        data.setdefault(base_uri, {})[handler] = payload
        self.store.set(self.state_key, data)

    def invalidate(self, base_uri: str | None = None, handler: str | None = None) -> None:
        """Forget cached payloads.

        Args:
            base_uri: Limit to one endpoint. None clears every endpoint.
            handler: Limit to one handler of ``base_uri``.
        """
        if base_uri is None:
            self.store.delete(self.state_key)
            return

        data = self._load()
        if handler is None:
            data.pop(base_uri, None)
        else:
            data.get(base_uri, {}).pop(handler, None)
        self.store.set(self.state_key, data)
        logger.debug("Invalidated cached Solr metadata for %s %s", base_uri, handler or "*")
