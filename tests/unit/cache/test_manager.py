"""Tests for the cache manager and the metadata cache built on it."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import redis

from solrconnector.cache.manager import CacheManager
from solrconnector.config.settings import CacheSettings
from solrconnector.connectors.base.metadata import MetadataCache

URI = "http://localhost:8983/solr/products/"


class TestMemoryBackend:
    def test_get_set_delete(self) -> None:
        cache = CacheManager()
        assert cache.get("k") is None
        cache.set("k", {"a": 1})
        assert cache.get("k") == {"a": 1}
        cache.delete("k")
        assert cache.get("k") is None

    def test_separate_managers_do_not_share(self) -> None:
        CacheManager().set("k", 1)
        assert CacheManager().get("k") is None


class TestRedisBackend:
    def _cache(self) -> tuple[CacheManager, MagicMock]:
        client = MagicMock(spec=redis.Redis)
        return CacheManager(CacheSettings(backend="redis"), client=client), client

    def test_set_serializes_json(self) -> None:
        cache, client = self._cache()
        cache.set("k", {"a": 1})
        client.set.assert_called_once_with("k", json.dumps({"a": 1}))

    def test_get_deserializes_json(self) -> None:
        cache, client = self._cache()
        client.get.return_value = '{"a": 1}'
        assert cache.get("k") == {"a": 1}

    def test_get_missing(self) -> None:
        cache, client = self._cache()
        client.get.return_value = None
        assert cache.get("k") is None

    def test_errors_are_treated_as_miss(self) -> None:
        cache, client = self._cache()
        client.get.side_effect = redis.ConnectionError("down")
        client.set.side_effect = redis.ConnectionError("down")
        assert cache.get("k") is None
        cache.set("k", 1)

    def test_delete(self) -> None:
        cache, client = self._cache()
        cache.delete("k")
        client.delete.assert_called_once_with("k")

    def test_shutdown_closes_client(self) -> None:
        cache, client = self._cache()
        cache.shutdown()
        client.close.assert_called_once()


class TestMetadataCache:
    def test_get_set(self) -> None:
        metadata = MetadataCache()
        assert metadata.get(URI, "admin/system") is None
        metadata.set(URI, "admin/system", {"core": {}})
        assert metadata.get(URI, "admin/system") == {"core": {}}

    def test_single_durable_entry(self) -> None:
        store = CacheManager()
        metadata = MetadataCache(store)
        metadata.set(URI, "admin/system", {"a": 1})
        metadata.set("http://localhost:8983/solr/", "admin/info/system", {"b": 2})

        assert store.get("solrconnector.endpoint.data") == {
            URI: {"admin/system": {"a": 1}},
            "http://localhost:8983/solr/": {"admin/info/system": {"b": 2}},
        }

    def test_custom_state_key(self) -> None:
        store = CacheManager(CacheSettings(state_key="site1.solr"))
        MetadataCache(store).set(URI, "admin/system", {})
        assert store.get("site1.solr") == {URI: {"admin/system": {}}}

    def test_invalidate_handler(self) -> None:
        metadata = MetadataCache()
        metadata.set(URI, "admin/system", {"a": 1})
        metadata.set(URI, "admin/luke", {"b": 2})

        metadata.invalidate(URI, "admin/system")

        assert metadata.get(URI, "admin/system") is None
        assert metadata.get(URI, "admin/luke") == {"b": 2}

    def test_invalidate_endpoint_and_all(self) -> None:
        metadata = MetadataCache()
        metadata.set(URI, "admin/system", {"a": 1})
        metadata.set("other", "admin/system", {"a": 2})

        metadata.invalidate(URI)
        assert metadata.get(URI, "admin/system") is None
        assert metadata.get("other", "admin/system") == {"a": 2}

        metadata.invalidate()
        assert metadata.get("other", "admin/system") is None

    def test_corrupt_entry_treated_as_empty(self) -> None:
        store = CacheManager()
        store.set("solrconnector.endpoint.data", "garbage")
        assert MetadataCache(store).get(URI, "admin/system") is None
