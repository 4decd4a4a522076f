import logging
from fastapi import HTTPException
from tourquote.core.redis import get_redis
from tourquote.core.config import settings
from tourquote.core.metrics import rate_limit_exceeded

logger = logging.getLogger(__name__)

async def check_rate_limit(subject: str):
    """Fixed-window limit per caller; skipped when Redis is down."""
    redis = get_redis()
    if redis is None:
        return
    key = f"rl:{subject}"
    try:
        current = await redis.get(key)
        if current is None:
            await redis.set(key, "1", ex=settings.RATE_LIMIT_WINDOW)
            return
        count = int(current)
    except Exception as e:
        logger.warning(f"Rate limit check failed: {e}")
        return
    if count >= settings.RATE_LIMIT:
        rate_limit_exceeded.labels(user_id=subject).inc()
        raise HTTPException(status_code=429, detail="Rate limit exceeded")
    await redis.incr(key)
