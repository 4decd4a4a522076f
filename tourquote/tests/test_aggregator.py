import pytest

from tourquote.core.enums import AccommodationMode, CostBasis, GroupCostMode, ServiceCategory
from tourquote.schemas.quote import MatchResult, PricingConfig, QuotationTotals
from tourquote.schemas.service import DetectedService
from tourquote.services.aggregator import (
    compute_totals,
    inflate,
    present_totals,
    round_to_increment,
    rooms_needed,
)


def _match(price, cost_basis=CostBasis.PER_PERSON, day=1, quantity=1,
           category=ServiceCategory.OTHER, currency="EUR", included=True):
    service = DetectedService(
        day=day,
        description="Service",
        category=category,
        cost_basis=cost_basis,
        quantity=quantity,
    )
    return MatchResult(
        service=service,
        matched=True,
        price=price,
        currency=currency,
        confidence=100,
        included=included,
    )


def _unmatched(day=1):
    service = DetectedService(day=day, description="Unknown", cost_basis=CostBasis.PER_PERSON)
    return MatchResult(service=service, matched=False, hint="Add pricing data")


@pytest.mark.pricing
class TestComputeTotals:

    def test_per_person_scenario(self, default_config):
        totals = compute_totals([_match(100)], 2, default_config)

        assert totals.net_per_person == pytest.approx(100)
        assert totals.tax_amount == pytest.approx(12)
        assert totals.markup_amount == pytest.approx(22.4)
        assert totals.sell_per_person == pytest.approx(134.4)
        assert totals.sell_per_group == pytest.approx(268.8)
        assert totals.currency == "EUR"

    @pytest.mark.parametrize("num_people", [1, 2, 7, 40])
    def test_per_group_cost_is_independent_of_group_size(self, default_config, num_people):
        totals = compute_totals([_match(50, CostBasis.PER_GROUP)], num_people, default_config)

        assert totals.net_per_person == 0
        assert totals.per_group_net == pytest.approx(50)
        assert totals.sell_per_group == pytest.approx(67.2)

    def test_empty_matches_give_zero_totals(self, default_config):
        totals = compute_totals([], 4, default_config)
        assert totals == QuotationTotals()

    def test_unmatched_and_excluded_services_contribute_nothing(self, default_config):
        totals = compute_totals(
            [_unmatched(), _match(80, included=False)], 3, default_config,
        )
        assert totals.net_per_person == 0
        assert totals.sell_per_group == 0
        assert totals.daily_totals == []

    def test_idempotent(self, default_config):
        matches = [_match(100), _match(50, CostBasis.PER_DAY, day=2)]
        assert compute_totals(matches, 3, default_config) == compute_totals(matches, 3, default_config)

    def test_per_person_scales_linearly(self, default_config):
        single = compute_totals([_match(40)], 1, default_config)
        for n in (2, 5, 12):
            totals = compute_totals([_match(40)], n, default_config)
            assert totals.sell_per_person == pytest.approx(single.sell_per_person)
            assert totals.sell_per_group == pytest.approx(single.sell_per_group * n)

    def test_quantity_multiplies_price(self, default_config):
        totals = compute_totals([_match(30, quantity=3)], 1, default_config)
        assert totals.net_per_person == pytest.approx(90)

    def test_daily_totals(self, default_config):
        matches = [
            _match(10, day=2),
            _match(100, CostBasis.PER_GROUP, day=1),
            _match(5, day=2),
        ]
        totals = compute_totals(matches, 2, default_config)

        assert [d.day for d in totals.daily_totals] == [1, 2]
        assert totals.daily_totals[0].net_total == pytest.approx(100)
        assert totals.daily_totals[1].net_total == pytest.approx(30)
        assert totals.daily_totals[1].sell_total == pytest.approx(30 * 1.12 * 1.2)

    def test_split_mode_folds_group_costs_per_person(self):
        config = PricingConfig(group_cost_mode=GroupCostMode.SPLIT)
        totals = compute_totals([_match(100), _match(60, CostBasis.FLAT_RATE)], 3, config)

        assert totals.net_per_person == pytest.approx(120)
        assert totals.sell_per_group == pytest.approx(totals.sell_per_person * 3)

    def test_split_and_shared_agree_on_group_total(self):
        matches = [_match(100), _match(60, CostBasis.FLAT_RATE)]
        shared = compute_totals(matches, 3, PricingConfig())
        split = compute_totals(matches, 3, PricingConfig(group_cost_mode=GroupCostMode.SPLIT))
        assert shared.sell_per_group == pytest.approx(split.sell_per_group)

    def test_currency_follows_first_priced_match(self, default_config):
        totals = compute_totals([_match(10, currency="EGP")], 1, default_config)
        assert totals.currency == "EGP"

    def test_currency_defaults_to_config(self):
        totals = compute_totals([], 1, PricingConfig(currency="USD"))
        assert totals.currency == "USD"

    @pytest.mark.parametrize("num_people", [0, -3])
    def test_rejects_empty_group(self, default_config, num_people):
        with pytest.raises(ValueError):
            compute_totals([_match(10)], num_people, default_config)

    def test_zero_rates(self):
        config = PricingConfig(tax_rate=0, markup_rate=0)
        totals = compute_totals([_match(100)], 2, config)
        assert totals.sell_per_person == pytest.approx(100)
        assert totals.tax_amount == 0
        assert totals.markup_amount == 0


@pytest.mark.pricing
class TestAccommodation:

    def test_per_room_multiplies_by_rooms(self):
        config = PricingConfig(accommodation_mode=AccommodationMode.PER_ROOM, occupancy=2)
        hotel = _match(90, CostBasis.PER_NIGHT, quantity=2, category=ServiceCategory.ACCOMMODATION)
        totals = compute_totals([hotel], 4, config)
        # 2 rooms x 2 nights
        assert totals.per_group_net == pytest.approx(360)

    def test_single_supplement_for_odd_groups(self):
        config = PricingConfig(
            accommodation_mode=AccommodationMode.PER_ROOM,
            occupancy=2,
            single_supplement=30,
        )
        hotel = _match(90, CostBasis.PER_NIGHT, quantity=2, category=ServiceCategory.ACCOMMODATION)
        totals = compute_totals([hotel], 3, config)
        # 2 rooms x 2 nights + supplement for 2 nights
        assert totals.per_group_net == pytest.approx(90 * 2 * 2 + 30 * 2)

    def test_per_person_mode_ignores_occupancy(self, default_config):
        hotel = _match(90, CostBasis.PER_NIGHT, category=ServiceCategory.ACCOMMODATION)
        totals = compute_totals([hotel], 5, default_config)
        assert totals.per_group_net == pytest.approx(90)

    @pytest.mark.parametrize("people,occupancy,rooms", [(1, 2, 1), (2, 2, 1), (3, 2, 2), (7, 3, 3)])
    def test_rooms_needed(self, people, occupancy, rooms):
        assert rooms_needed(people, occupancy) == rooms


@pytest.mark.pricing
class TestPresentation:

    @pytest.mark.parametrize("value,increment,expected", [
        (268.8, 50, 250.0),
        (276.0, 50, 300.0),
        (134.4, 10, 130.0),
        (0.0, 50, 0.0),
        (1234.0, 1, 1234.0),
        (125.0, 50, 150.0),
        (25.0, 50, 50.0),
        (75.0, 50, 100.0),
    ])
    def test_round_to_increment(self, value, increment, expected):
        assert round_to_increment(value, increment) == expected

    @pytest.mark.parametrize("value", [0.0, 12.3, 268.8, 999.99, 10025.0])
    @pytest.mark.parametrize("increment", [1, 5, 50, 100])
    def test_rounded_values_are_multiples_within_half_increment(self, value, increment):
        rounded = round_to_increment(value, increment)
        assert rounded % increment == 0
        assert abs(rounded - value) <= increment / 2

    def test_round_rejects_non_positive_increment(self):
        with pytest.raises(ValueError):
            round_to_increment(10, 0)

    def test_present_totals_rounds_every_figure(self, default_config):
        totals = compute_totals([_match(100)], 2, default_config)
        shown = present_totals(totals, default_config)

        assert shown.sell_per_group == 250
        assert shown.sell_per_person == 150
        assert shown.net_per_person == 100
        assert shown.currency == "EUR"
        assert shown.rounding_increment == 50

    def test_present_totals_applies_exchange_rate(self):
        config = PricingConfig(currency="EGP", exchange_rate=50, rounding_increment=100)
        totals = compute_totals([_match(100)], 2, PricingConfig())
        shown = present_totals(totals, config)

        assert shown.currency == "EGP"
        assert shown.sell_per_group == 13400
        assert totals.sell_per_group == pytest.approx(268.8)

    def test_inflate(self, default_config):
        assert inflate(50, default_config) == pytest.approx(67.2)

    def test_half_increment_rounds_up_for_display(self):
        config = PricingConfig(tax_rate=0, markup_rate=0)
        totals = compute_totals([_match(125)], 1, config)
        assert present_totals(totals, config).sell_per_person == 150
