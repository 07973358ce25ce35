import logging

from fastapi import HTTPException, Request

from railcast.config import get_settings
from railcast import redis as redis_module

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


async def rate_limit(request: Request):
    client = redis_module.redis_client
    if client is None:
        return

    ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{ip}:audio"

    try:
        count = await client.incr(key)
        if count == 1:
            await client.expire(key, WINDOW_SECONDS)
        if count > get_settings().rate_limit_per_minute:
            raise HTTPException(status_code=429, detail="Rate limit exceeded")
    except HTTPException:
        raise
    except Exception as e:
        logger.warning("Rate limit check failed (Redis): %s", e)
