import logging
from typing import Generator, Optional

import redis

from pharmasave.core.config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Return the shared Redis client, creating it on first use."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _redis_client


def set_redis_client(client) -> None:
    """Replace the shared client (used by tests and alternative deployments)."""
    global _redis_client
    _redis_client = client


def get_redis() -> Generator[redis.Redis, None, None]:
    yield get_redis_client()
