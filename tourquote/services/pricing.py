import logging
from typing import Optional, Sequence

from tourquote.core.enums import PricingProfile, ServiceCategory
from tourquote.core.metrics import quotations_computed
from tourquote.schemas.catalog import CatalogEntry
from tourquote.schemas.quote import MatchResult, PricingConfig, QuoteResponse
from tourquote.schemas.service import DetectedService
from tourquote.services.aggregator import compute_totals, present_totals
from tourquote.services.analysis import compile_analysis
from tourquote.services.matcher import match_services

logger = logging.getLogger(__name__)

PROFILE_EXCLUSIONS = {
    PricingProfile.BASE: {ServiceCategory.ENTRANCE_FEES.value, ServiceCategory.MEALS.value},
    PricingProfile.TICKETS: {ServiceCategory.MEALS.value},
    PricingProfile.TICKETS_LUNCH: set(),
}


def apply_profile(matches: Sequence[MatchResult], profile: str) -> list[MatchResult]:
    """Flag services the package profile leaves out of the totals."""
    excluded = PROFILE_EXCLUSIONS[PricingProfile(profile)]
    return [
        m.model_copy(update={"included": m.service.category not in excluded})
        for m in matches
    ]


def calculate_quote(
    services: Sequence[DetectedService],
    catalog: Sequence[CatalogEntry],
    num_people: int,
    config: PricingConfig,
    num_days: Optional[int] = None,
    source: str = "calc",
) -> QuoteResponse:
    if num_people < 1:
        raise ValueError("num_people must be at least 1")

    matches = apply_profile(match_services(services, catalog), config.profile)
    totals = compute_totals(matches, num_people, config)
    quotations_computed.labels(source=source).inc()

    logger.info(
        f"Quote computed: {len(matches)} services, profile={config.profile}, "
        f"sell_per_group={totals.sell_per_group:.2f} {totals.currency}"
    )

    return QuoteResponse(
        detected_services=[m.service for m in matches],
        matches=matches,
        pricing_config=config,
        totals=totals,
        display=present_totals(totals, config),
        analysis=compile_analysis(matches, num_people, num_days, config),
    )
