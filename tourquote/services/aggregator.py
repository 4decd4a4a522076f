"""Quotation totals.

Per-person costs accumulate into the headline per-person figure. Group
costs (per group, flat rate, per night, per day) are tracked separately
and, in the default shared mode, only come back in at the group level,
inflated by the same tax and markup as everything else.

Nothing here is rounded; rounding happens in ``present_totals``.
"""
import math
from collections import defaultdict
from typing import Sequence

from tourquote.core.enums import AccommodationMode, CostBasis, GroupCostMode, ServiceCategory
from tourquote.schemas.quote import (
    DailyTotal,
    MatchResult,
    PresentedTotals,
    PricingConfig,
    QuotationTotals,
)

GROUP_COST_BASES = frozenset(
    basis.value
    for basis in (CostBasis.PER_GROUP, CostBasis.FLAT_RATE, CostBasis.PER_NIGHT, CostBasis.PER_DAY)
)


def round_to_increment(value: float, increment: int) -> float:
    """Nearest multiple of ``increment``; halves round up."""
    if increment <= 0:
        raise ValueError("rounding increment must be positive")
    return float(math.floor(value / increment + 0.5) * increment)


def inflate(net: float, config: PricingConfig) -> float:
    """Apply tax, then markup on the taxed amount."""
    return net * (1 + config.tax_rate) * (1 + config.markup_rate)


def rooms_needed(num_people: int, occupancy: int) -> int:
    return math.ceil(num_people / occupancy)


def group_amount(match: MatchResult, num_people: int, config: PricingConfig) -> float:
    service = match.service
    amount = match.price * service.quantity

    if (
        service.category == ServiceCategory.ACCOMMODATION
        and config.accommodation_mode == AccommodationMode.PER_ROOM
    ):
        amount *= rooms_needed(num_people, config.occupancy)
        if config.single_supplement and num_people % config.occupancy:
            amount += config.single_supplement * service.quantity

    return amount


def compute_totals(
    matches: Sequence[MatchResult],
    num_people: int,
    config: PricingConfig,
) -> QuotationTotals:
    if num_people < 1:
        raise ValueError("num_people must be at least 1")

    priced = [m for m in matches if m.matched and m.included and m.price is not None]
    currency = next((m.currency for m in priced if m.currency), None) or config.currency

    per_person_net = 0.0
    per_group_net = 0.0
    day_nets = defaultdict(float)

    for match in priced:
        service = match.service
        if service.cost_basis == CostBasis.PER_PERSON:
            amount = match.price * service.quantity
            per_person_net += amount
            day_nets[service.day] += amount * num_people
        elif service.cost_basis in GROUP_COST_BASES:
            amount = group_amount(match, num_people, config)
            per_group_net += amount
            day_nets[service.day] += amount
        else:
            raise ValueError(f"Unsupported cost basis: {service.cost_basis}")

    if config.group_cost_mode == GroupCostMode.SPLIT:
        net_per_person = per_person_net + per_group_net / num_people
    else:
        net_per_person = per_person_net

    tax_amount = net_per_person * config.tax_rate
    markup_amount = (net_per_person + tax_amount) * config.markup_rate
    sell_per_person = net_per_person + tax_amount + markup_amount
    sell_per_group = sell_per_person * num_people
    if config.group_cost_mode == GroupCostMode.SHARED:
        sell_per_group += inflate(per_group_net, config)

    daily_totals = [
        DailyTotal(day=day, net_total=net, sell_total=inflate(net, config))
        for day, net in sorted(day_nets.items())
    ]

    return QuotationTotals(
        net_per_person=net_per_person,
        tax_amount=tax_amount,
        markup_amount=markup_amount,
        sell_per_person=sell_per_person,
        sell_per_group=sell_per_group,
        per_group_net=per_group_net,
        currency=currency,
        daily_totals=daily_totals,
    )


def present_totals(totals: QuotationTotals, config: PricingConfig) -> PresentedTotals:
    """Convert by the exchange rate and round every figure for display."""
    increment = config.rounding_increment
    rate = config.exchange_rate

    def show(value: float) -> float:
        return round_to_increment(value * rate, increment)

    currency = totals.currency if rate == 1.0 else config.currency
    return PresentedTotals(
        net_per_person=show(totals.net_per_person),
        tax_amount=show(totals.tax_amount),
        markup_amount=show(totals.markup_amount),
        sell_per_person=show(totals.sell_per_person),
        sell_per_group=show(totals.sell_per_group),
        currency=currency,
        rounding_increment=increment,
        daily_totals=[
            DailyTotal(day=d.day, net_total=show(d.net_total), sell_total=show(d.sell_total))
            for d in totals.daily_totals
        ],
    )
