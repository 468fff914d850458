"""Process-wide Redis connection used by the access-token blocklist."""

import redis
from django.conf import settings

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the shared client, created on first use from REDIS_URL.

    Short socket timeouts make an unreachable Redis surface quickly as
    ``BlocklistUnavailable`` (503) instead of hanging the request.
    """

    global _client
    if _client is None:
        timeout = getattr(settings, "REDIS_SOCKET_TIMEOUT", 2.0)
        _client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
    return _client


__all__ = ["get_redis_client"]
