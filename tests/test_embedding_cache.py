"""Tests for the Redis fast tier with a mocked Redis client."""

import json
from unittest.mock import MagicMock, patch

import pytest
import redis

from effort_engine.db.embedding_cache import RedisEmbeddingCache


@pytest.fixture
def mock_redis():
    return MagicMock(spec=redis.Redis)


@pytest.fixture
def sample_row():
    return {
        "subject_id": "client-1",
        "embedding_type": "activity_logs",
        "embedding": [0.5, 0.5],
        "metadata": {},
        "created_at": "2026-01-01T00:00:00+00:00",
    }


def test_cache_key(mock_redis):
    cache = RedisEmbeddingCache(mock_redis, key_prefix="emb")

    assert cache.cache_key("client-1", "client_effort") == "emb:client-1:client_effort"


def test_default_prefix_and_ttl_from_settings(mock_redis):
    cache = RedisEmbeddingCache(mock_redis)

    assert cache.key_prefix == "subject_embedding"
    assert cache.ttl_seconds == 86_400


def test_put_with_ttl_uses_setex(mock_redis, sample_row):
    cache = RedisEmbeddingCache(mock_redis, ttl_seconds=60)

    cache.put(sample_row)

    mock_redis.setex.assert_called_once_with(
        "subject_embedding:client-1:activity_logs", 60, json.dumps(sample_row)
    )
    mock_redis.set.assert_not_called()


def test_put_without_ttl_uses_set(mock_redis, sample_row):
    cache = RedisEmbeddingCache(mock_redis, ttl_seconds=0)

    cache.put(sample_row)

    mock_redis.set.assert_called_once_with(
        "subject_embedding:client-1:activity_logs", json.dumps(sample_row)
    )


def test_get_hit(mock_redis, sample_row):
    mock_redis.get.return_value = json.dumps(sample_row)
    cache = RedisEmbeddingCache(mock_redis)

    assert cache.get("client-1", "activity_logs") == sample_row
    mock_redis.get.assert_called_once_with("subject_embedding:client-1:activity_logs")


def test_get_miss(mock_redis):
    mock_redis.get.return_value = None

    assert RedisEmbeddingCache(mock_redis).get("client-1", "activity_logs") is None


def test_delete(mock_redis):
    RedisEmbeddingCache(mock_redis).delete("client-1", "activity_logs")

    mock_redis.delete.assert_called_once_with("subject_embedding:client-1:activity_logs")


def test_errors_propagate(mock_redis):
    mock_redis.get.side_effect = redis.ConnectionError("connection refused")

    with pytest.raises(redis.ConnectionError):
        RedisEmbeddingCache(mock_redis).get("client-1", "activity_logs")


def test_from_url():
    with patch("effort_engine.db.embedding_cache.redis.Redis.from_url") as mock_from_url:
        cache = RedisEmbeddingCache.from_url("redis://localhost:6379/0", key_prefix="x")

        mock_from_url.assert_called_once_with(
            "redis://localhost:6379/0", encoding="utf-8", decode_responses=True
        )
        assert cache.client is mock_from_url.return_value
        assert cache.key_prefix == "x"
