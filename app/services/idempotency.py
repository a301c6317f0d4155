import logging

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)


class IdempotencyStore:
    """
    Seen-keys store for webhook event ids. Fails open when Redis is down: the
    subscription state machine converges on replays anyway.
    """

    def __init__(self) -> None:
        self.client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self.default_ttl = settings.idempotency_ttl

    def check_and_set(self, key: str, ttl_seconds: int | None = None) -> bool:
        """Atomic operation: setnx + expire in one call. True = first time seen."""
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        try:
            created = self.client.set(f"idempotency:{key}", "1", nx=True, ex=ttl)
        except redis.RedisError as e:
            logger.warning("idempotency_redis_error", extra={"error": str(e)})
            return True
        return created is not None

    def release(self, key: str) -> None:
        """Forget a key so a retried delivery is processed again (used when processing failed)."""
        try:
            self.client.delete(f"idempotency:{key}")
        except redis.RedisError as e:
            logger.warning("idempotency_redis_error", extra={"error": str(e)})
