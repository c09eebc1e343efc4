"""Fast tier: subject embeddings cached in Redis.

Entries mirror durable-tier rows as JSON under
`{prefix}:{subject_id}:{embedding_type}`. This class lets Redis errors
propagate; EmbeddingStore decides that fast-tier failures are non-fatal.
"""

import json
from typing import Any

import redis

from effort_engine.core.config import get_settings
from effort_engine.core.logging import get_logger

logger = get_logger(__name__)


class RedisEmbeddingCache:
    """Best-effort cache of embedding rows keyed by subject and type."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str | None = None,
        ttl_seconds: int | None = None,
    ):
        settings = get_settings()
        self.client = client
        self.key_prefix = key_prefix or settings.FAST_TIER_KEY_PREFIX
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.FAST_TIER_TTL_SECONDS

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisEmbeddingCache":
        """Create a cache over a fresh Redis connection pool."""
        client = redis.Redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, **kwargs)

    def cache_key(self, subject_id: str, embedding_type: str) -> str:
        return f"{self.key_prefix}:{subject_id}:{embedding_type}"

    def get(self, subject_id: str, embedding_type: str) -> dict[str, Any] | None:
        cached = self.client.get(self.cache_key(subject_id, embedding_type))
        if not cached:
            return None
        logger.debug(f"Fast tier hit for {embedding_type} embedding of {subject_id}")
        return json.loads(cached)

    def put(self, row: dict[str, Any]) -> None:
        key = self.cache_key(row["subject_id"], row["embedding_type"])
        payload = json.dumps(row)
        if self.ttl_seconds:
            self.client.setex(key, self.ttl_seconds, payload)
        else:
            self.client.set(key, payload)

    def delete(self, subject_id: str, embedding_type: str) -> None:
        self.client.delete(self.cache_key(subject_id, embedding_type))
