import logging
from typing import Optional

import redis.asyncio as redis

from railcast.config import get_settings

logger = logging.getLogger(__name__)

REDIS_URL = get_settings().redis_url

if not REDIS_URL:
    logger.warning(
        "REDIS_URL is not set; rate limiting on the audio route is disabled. "
        "Add it to your .env file, e.g. REDIS_URL=redis://localhost:6379/0"
    )

redis_client: Optional[redis.Redis] = (
    redis.from_url(REDIS_URL, decode_responses=True) if REDIS_URL else None
)
