"""Tests for history collapsing, step-function lookup and daily costs."""

from datetime import date, datetime

import pytest

from sesync.costs import StepFunction, calculate_daily_costs, collapse_changes
from sesync.types import PeriodTotal, StandingChargeValue, UnitPriceValue


class TestCollapseChanges:
    """Test collapse_changes."""

    def test_collapses_runs_of_equal_values(self):
        entries = [
            UnitPriceValue(datetime(2024, 1, day), value)
            for day, value in zip(range(1, 6), [100, 100, 150, 150, 100])
        ]

        collapsed = collapse_changes(entries)

        assert [e.value for e in collapsed] == [100, 150, 100]
        assert [e.timestamp.day for e in collapsed] == [1, 3, 5]

    def test_empty(self):
        assert collapse_changes([]) == []

    def test_single_entry(self):
        entry = StandingChargeValue(datetime(2024, 1, 1), 50.0)
        assert collapse_changes([entry]) == [entry]


class TestStepFunction:
    """Test StepFunction."""

    @pytest.fixture
    def lookup(self):
        return StepFunction([(datetime(2024, 2, 1), 550.0), (datetime(2024, 1, 1), 500.0)])

    def test_value_between_entries(self, lookup):
        assert lookup.value_at(datetime(2024, 1, 15)) == 500.0

    def test_value_on_effective_instant(self, lookup):
        assert lookup.value_at(datetime(2024, 2, 1)) == 550.0

    def test_value_after_last_entry(self, lookup):
        assert lookup.value_at(datetime(2025, 1, 1)) == 550.0

    def test_value_before_first_entry(self, lookup):
        assert lookup.value_at(datetime(2023, 12, 31)) is None

    def test_empty(self):
        assert StepFunction([]).value_at(datetime(2024, 1, 1)) is None


class TestCalculateDailyCosts:
    """Test calculate_daily_costs."""

    @pytest.fixture
    def standing_charges(self):
        return [
            StandingChargeValue(datetime(2024, 1, 1), 500.0),
            StandingChargeValue(datetime(2024, 2, 1), 550.0),
        ]

    @pytest.fixture
    def unit_prices(self):
        return [UnitPriceValue(datetime(2024, 1, 1), 20.0)]

    def test_uses_latest_charge_at_or_before_day(self, standing_charges, unit_prices):
        daily = [PeriodTotal(date(2024, 1, 15), 10.0), PeriodTotal(date(2024, 2, 3), 4.0)]

        costs = calculate_daily_costs(daily, standing_charges, unit_prices)

        assert [c.day for c in costs] == [date(2024, 1, 15), date(2024, 2, 3)]
        assert costs[0].cost_pence == pytest.approx(500.0 + 10.0 * 20.0)
        assert costs[1].cost_pence == pytest.approx(550.0 + 4.0 * 20.0)
        assert costs[1].standing_charge_pence == 550.0

    def test_day_without_tariff_is_dropped(self, standing_charges, unit_prices):
        daily = [PeriodTotal(date(2023, 12, 31), 8.0), PeriodTotal(date(2024, 1, 2), 1.0)]

        costs = calculate_daily_costs(daily, standing_charges, unit_prices)

        assert [c.day for c in costs] == [date(2024, 1, 2)]

    def test_day_without_unit_price_is_dropped(self, standing_charges):
        daily = [PeriodTotal(date(2024, 1, 15), 10.0)]
        assert calculate_daily_costs(daily, standing_charges, []) == []
