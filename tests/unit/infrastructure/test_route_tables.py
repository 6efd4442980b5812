"""
Unit tests for route tables and the Redis repository they use.
"""

from unittest.mock import Mock

import pytest

from upload_broker.infrastructure.redis_repository import RedisRepository
from upload_broker.infrastructure.route_tables import InMemoryRouteTable, RedisRouteTable


class TestInMemoryRouteTable:
    def test_register_lookup_unregister(self):
        table = InMemoryRouteTable()

        table.register("upload.example.com", "example.com")

        assert table.lookup("upload.example.com") == "example.com"
        assert table.all_routes() == {"upload.example.com": "example.com"}

        table.unregister("upload.example.com")
        table.unregister("upload.example.com")

        assert table.lookup("upload.example.com") is None


class TestRedisRouteTable:
    @pytest.fixture
    def redis_client(self):
        return Mock()

    @pytest.fixture
    def table(self, redis_client):
        return RedisRouteTable(RedisRepository(redis_client, "upload_broker"))

    def test_register_writes_hash_field(self, table, redis_client):
        table.register("upload.example.com", "example.com")

        redis_client.hset.assert_called_once_with(
            "upload_broker:routes", "upload.example.com", "example.com"
        )

    def test_unregister_deletes_hash_field(self, table, redis_client):
        redis_client.hdel.return_value = 1

        table.unregister("upload.example.com")

        redis_client.hdel.assert_called_once_with("upload_broker:routes", "upload.example.com")

    def test_lookup_decodes_bytes(self, table, redis_client):
        redis_client.hget.return_value = b"example.com"

        assert table.lookup("upload.example.com") == "example.com"

    def test_lookup_missing(self, table, redis_client):
        redis_client.hget.return_value = None

        assert table.lookup("upload.example.com") is None

    def test_all_routes(self, table, redis_client):
        redis_client.hgetall.return_value = {b"upload.example.com": b"example.com"}

        assert table.all_routes() == {"upload.example.com": "example.com"}

    def test_redis_errors_propagate(self, table, redis_client):
        import redis

        redis_client.hset.side_effect = redis.exceptions.ConnectionError("down")

        with pytest.raises(redis.exceptions.ConnectionError):
            table.register("upload.example.com", "example.com")


class TestRedisRepository:
    def test_key_prefix(self):
        assert RedisRepository(Mock(), "p")._make_key("routes") == "p:routes"
        assert RedisRepository(Mock())._make_key("routes") == "routes"

    def test_exists(self):
        client = Mock()
        client.exists.return_value = 1

        assert RedisRepository(client, "p").exists("routes")
        client.exists.assert_called_once_with("p:routes")
