import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.future import select
from tourquote.core.config import settings
from tourquote.models.quotation import Quotation
from tourquote.models.user import User  # noqa: F401  resolves Quotation.creator
from tourquote.schemas.quote import PricingConfig
from tourquote.schemas.service import DetectedService
from tourquote.services.catalog import get_active_catalog
from tourquote.services.pricing import calculate_quote
from tourquote.services.webhook import quotation_webhook_payload, send_webhook

logger = logging.getLogger(__name__)

engine_worker = create_async_engine(settings.DATABASE_URL, future=True, echo=False)
AsyncSessionWorker = sessionmaker(engine_worker, class_=AsyncSession, expire_on_commit=False)


def reprice_bundle(quotation: Quotation, catalog) -> bool:
    """Re-run matching and totals for a stored bundle. Returns True if totals moved."""
    services = [DetectedService.model_validate(s) for s in quotation.detected_services]
    config = PricingConfig.model_validate(quotation.pricing_config)
    quote = calculate_quote(
        services,
        catalog,
        quotation.num_people,
        config,
        num_days=quotation.num_days,
        source="reprice",
    )

    new_totals = quote.totals.model_dump(mode="json")
    changed = new_totals != quotation.totals
    quotation.match_results = [m.model_dump(mode="json") for m in quote.matches]
    quotation.totals = new_totals
    return changed


async def reprice_quotation_async(quotation_id: int) -> bool:
    """Background task: price a saved quotation against the current catalog."""
    async with AsyncSessionWorker() as db:
        res = await db.execute(select(Quotation).where(Quotation.id == quotation_id))
        quotation = res.scalars().first()
        if not quotation:
            logger.warning(f"Reprice skipped, quotation {quotation_id} not found")
            return False

        catalog = await get_active_catalog(db)
        changed = reprice_bundle(quotation, catalog)
        db.add(quotation)
        await db.commit()

    logger.info(f"Repriced quotation {quotation_id}, totals changed={changed}")
    if changed:
        await send_webhook(quotation_webhook_payload(quotation, "quotation.repriced"))
    return changed
