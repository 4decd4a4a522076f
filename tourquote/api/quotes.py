"""Quote endpoints: price detected services, or analyze free itinerary text"""
import json
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tourquote.schemas.catalog import CatalogEntry
from tourquote.schemas.quote import AnalyzeRequest, QuoteRequest, QuoteResponse
from tourquote.services.catalog import get_active_catalog
from tourquote.services.extractor import ServiceExtractor, get_extractor
from tourquote.services.pricing import calculate_quote
from tourquote.core.redis import get_redis
from tourquote.core.config import settings
from tourquote.core.metrics import cache_hits, cache_misses
from tourquote.core.rate_limit import check_rate_limit
from tourquote.core.security import get_current_user
from tourquote.db.session import get_db
from tourquote.utils.hashing import cache_key

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])


async def get_catalog(db: AsyncSession = Depends(get_db)) -> list[CatalogEntry]:
    return await get_active_catalog(db)


async def _cached_quote(key: str):
    redis = get_redis()
    if redis is None:
        return None
    try:
        cached = await redis.get(key)
    except Exception as e:
        logger.warning(f"Cache retrieval failed: {e}")
        return None
    if not cached:
        cache_misses.labels(cache="quote").inc()
        return None
    cache_hits.labels(cache="quote").inc()
    return QuoteResponse.model_validate(json.loads(cached))


async def _store_quote(key: str, result: QuoteResponse) -> None:
    redis = get_redis()
    if redis is None:
        return
    try:
        await redis.set(key, result.model_dump_json(), ex=settings.QUOTE_CACHE_TTL)
    except Exception as e:
        logger.warning(f"Cache write failed: {e}")


@router.post("/calc", response_model=QuoteResponse)
async def calc_quote(req: QuoteRequest, catalog: list[CatalogEntry] = Depends(get_catalog)):
    key = cache_key("quote", req, [entry.model_dump(mode="json") for entry in catalog])
    cached = await _cached_quote(key)
    if cached is not None:
        return cached

    result = calculate_quote(
        req.services,
        catalog,
        req.num_people,
        req.config,
        num_days=req.num_days,
        source="calc",
    )
    await _store_quote(key, result)
    return result


@router.post("/analyze", response_model=QuoteResponse)
async def analyze_itinerary(
    req: AnalyzeRequest,
    catalog: list[CatalogEntry] = Depends(get_catalog),
    extractor: ServiceExtractor = Depends(get_extractor),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(str(current_user.id))

    services = await extractor.extract(req.itinerary_text, req.num_days, req.num_people)
    logger.info(f"Analyzing itinerary for user {current_user.id}: {len(services)} services detected")

    return calculate_quote(
        services,
        catalog,
        req.num_people,
        req.config,
        num_days=req.num_days,
        source="analyze",
    )
