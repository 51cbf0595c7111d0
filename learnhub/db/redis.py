"""Redis connection management.

Redis is the durable slot behind the persistence adapter: each store's
snapshot lives under one key and is rewritten after every mutation.
When REDIS_URL is unset (local dev, tests) the adapter writes to process
memory instead and no Redis server is needed.

The client is synchronous on purpose.  Snapshots are flushed inside the
mutating action, before it returns, so there is no await point between
the in-memory change and its durable copy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import redis

from learnhub.core.config import SETTINGS

logger = logging.getLogger(__name__)


def connect(url: str | None) -> redis.Redis | None:  # type: ignore[type-arg]
    if not url:
        return None
    return redis.Redis.from_url(
        url,
        decode_responses=True,  # snapshots are JSON text
        socket_timeout=2.0,
        health_check_interval=30,
    )


redis_client = connect(SETTINGS.redis_url)


def ping(client: redis.Redis | None) -> bool:  # type: ignore[type-arg]
    if client is None:
        return False
    try:
        return bool(client.ping())
    except redis.RedisError:
        logger.warning("Redis ping failed")
        return False


@contextmanager
def lifespan_redis(client: redis.Redis | None = redis_client) -> Iterator[None]:  # type: ignore[type-arg]
    """Verify connectivity on startup and release the pool on shutdown.

    An unreachable Redis does not stop startup: snapshot writes will fail
    and be logged, while the in-memory state keeps serving requests.
    """
    if client is None:
        logger.info("No REDIS_URL configured, snapshots kept in process memory")
        yield
        return

    if ping(client):
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    else:
        logger.error("Redis unreachable on startup, continuing without durable snapshots")

    try:
        yield
    finally:
        client.close()
        logger.info("Redis connection closed")
