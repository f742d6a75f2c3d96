"""
Response caching helpers built on fastapi-cache.

Read endpoints share one cache namespace that is cleared after every write,
so a new summary is visible immediately instead of after the TTL.
"""
import logging
from fastapi_cache import FastAPICache
from fastapi_cache.decorator import cache

from app.config import get_settings
from app.constants import CACHE_NAMESPACE

logger = logging.getLogger(__name__)


def cached_summary_response(func):
    """Cache a read endpoint when caching is enabled, otherwise leave it as is."""
    settings = get_settings()
    if not settings.CACHE_ENABLED:
        return func
    return cache(expire=settings.CACHE_TTL_SECONDS, namespace=CACHE_NAMESPACE)(func)


async def invalidate_summary_cache() -> None:
    """Drop every cached read response after a summary was written."""
    if not get_settings().CACHE_ENABLED:
        return
    cleared = await FastAPICache.clear(namespace=CACHE_NAMESPACE)
    logger.debug(f"Cleared {cleared} cached summary responses")
