from collections import OrderedDict
from typing import Optional, Sequence

from tourquote.core.enums import CostBasis
from tourquote.schemas.quote import (
    AnalysisSummary,
    CategoryTotal,
    DayServices,
    MatchResult,
    MissingPrice,
    PricingConfig,
)
from tourquote.services.aggregator import group_amount

COMPLETION_WARNING_THRESHOLD = 80.0


def _service_total(match: MatchResult, num_people: int, config: PricingConfig) -> float:
    if match.service.cost_basis == CostBasis.PER_PERSON:
        return match.price * match.service.quantity * num_people
    # same room and supplement rules as the quotation totals
    return group_amount(match, num_people, config)


def _unique_cities(matches: Sequence[MatchResult]) -> list[str]:
    cities = []
    for match in matches:
        location = match.service.location
        if location and location not in cities:
            cities.append(location)
    return cities


def _group_by_day(matches: Sequence[MatchResult]) -> list[DayServices]:
    by_day: dict[int, list[MatchResult]] = {}
    for match in matches:
        by_day.setdefault(match.service.day, []).append(match)

    return [
        DayServices(
            day=day,
            label=f"Day {day}",
            location=services[0].service.location or "Various locations",
            services=services,
        )
        for day, services in sorted(by_day.items())
    ]


def _recommendations(matched: int, unmatched: int, completion_rate: float) -> list[str]:
    recommendations = []
    if unmatched:
        recommendations.append(
            f"{unmatched} services need pricing data. Review the missing prices section for details."
        )
    if matched:
        recommendations.append(f"{matched} services successfully matched with catalog prices.")
    if (matched or unmatched) and completion_rate < COMPLETION_WARNING_THRESHOLD:
        recommendations.append(
            f"Current pricing completion: {completion_rate:.0f}%. Add missing prices to improve accuracy."
        )
    return recommendations


def compile_analysis(
    matches: Sequence[MatchResult],
    num_people: int,
    num_days: Optional[int] = None,
    config: Optional[PricingConfig] = None,
) -> AnalysisSummary:
    """Summarise a matched itinerary: coverage, per-day grouping, gaps."""
    config = config or PricingConfig()
    with_prices = [m for m in matches if m.matched]
    without_prices = [m for m in matches if not m.matched]

    if matches:
        completion_rate = len(with_prices) / len(matches) * 100
    else:
        completion_rate = 0.0

    category_totals: "OrderedDict[str, list]" = OrderedDict()
    for match in with_prices:
        if not match.included or match.price is None:
            continue
        bucket = category_totals.setdefault(match.service.category, [0.0, 0])
        bucket[0] += _service_total(match, num_people, config)
        bucket[1] += 1

    if num_days is None:
        num_days = max((m.service.day for m in matches), default=0)

    return AnalysisSummary(
        total_days=num_days,
        total_people=num_people,
        cities=_unique_cities(matches),
        total_services=len(matches),
        services_with_prices=len(with_prices),
        services_without_prices=len(without_prices),
        completion_rate=completion_rate,
        services_by_day=_group_by_day(matches),
        breakdown_by_category=[
            CategoryTotal(category=category, total=total, count=count)
            for category, (total, count) in category_totals.items()
        ],
        missing_prices=[
            MissingPrice(
                day=m.service.day,
                category=m.service.category,
                description=m.service.description,
                hint=m.hint or "Add this service to your pricing catalog",
            )
            for m in without_prices
        ],
        recommendations=_recommendations(len(with_prices), len(without_prices), completion_rate),
    )
