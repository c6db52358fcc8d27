"""Tests for repository classes."""

import json
from datetime import date, datetime

import pytest
from sqlalchemy import select, update

from sesync.db.models import ElectricityConsumption
from sesync.db.repositories import (
    ENERGY_CONSUMPTION_KWH_ERROR_CODE,
    ConsumptionRepository,
    SyncProfileRepository,
    TariffRepository,
    extract_plan_rates,
)
from sesync.types import (
    ConsumptionValue,
    StandingChargeValue,
    TariffPlanValue,
    TariffValues,
    UnitPriceValue,
    Utility,
)
from sesync.utils.exceptions import NotFoundError


def make_plan(tariff_id: str, effective: datetime, standing: str, rate: str) -> TariffPlanValue:
    plan = [{"planDetail": [{"standing": standing}, {"rate": rate}]}]
    return TariffPlanValue(tariff_id, json.dumps(plan), effective, f"Plan {tariff_id}")


class TestConsumptionRepository:
    """Test ConsumptionRepository."""

    def test_upsert_is_idempotent_last_write_wins(self, test_session):
        repo = ConsumptionRepository(test_session, Utility.ELECTRICITY)

        repo.upsert_batch([ConsumptionValue(datetime(2024, 1, 1, 0, 0), 1.5)])
        repo.upsert_batch([ConsumptionValue(datetime(2024, 1, 1, 0, 0), 2.0)])

        readings = repo.get_raw(date(2024, 1, 1), date(2024, 1, 2))
        assert readings == [ConsumptionValue(datetime(2024, 1, 1, 0, 0), 2.0)]

    def test_utilities_are_separate_tables(self, test_session):
        ConsumptionRepository(test_session, Utility.ELECTRICITY).upsert_batch(
            [ConsumptionValue(datetime(2024, 1, 1, 0, 0), 1.0)]
        )

        gas = ConsumptionRepository(test_session, Utility.GAS)
        assert gas.get_raw(date(2024, 1, 1), date(2024, 1, 2)) == []

    def test_upsert_empty_batch(self, test_session):
        assert ConsumptionRepository(test_session, Utility.GAS).upsert_batch([]) == 0

    def test_raw_range_is_half_open(self, test_session):
        repo = ConsumptionRepository(test_session, Utility.ELECTRICITY)
        repo.upsert_batch(
            [
                ConsumptionValue(datetime(2024, 1, 1, 0, 0), 1.0),
                ConsumptionValue(datetime(2024, 1, 1, 23, 30), 2.0),
                ConsumptionValue(datetime(2024, 1, 2, 0, 0), 3.0),
            ]
        )

        readings = repo.get_raw(date(2024, 1, 1), date(2024, 1, 2))
        assert [r.value for r in readings] == [1.0, 2.0]

    def test_error_sentinel_is_stored_but_excluded(self, test_session):
        repo = ConsumptionRepository(test_session, Utility.GAS)
        repo.upsert_batch(
            [
                ConsumptionValue(datetime(2024, 1, 1, 0, 0), 1.0),
                ConsumptionValue(datetime(2024, 1, 1, 0, 30), ENERGY_CONSUMPTION_KWH_ERROR_CODE),
            ]
        )

        assert len(repo.get_all()) == 2
        assert [r.value for r in repo.get_raw(date(2024, 1, 1), date(2024, 1, 2))] == [1.0]
        assert repo.get_daily(date(2024, 1, 1), date(2024, 1, 2))[0].value == pytest.approx(1.0)
        assert repo.get_monthly(date(2024, 1, 1), date(2024, 2, 1))[0].value == pytest.approx(1.0)

    def test_daily_totals(self, test_session):
        repo = ConsumptionRepository(test_session, Utility.ELECTRICITY)
        repo.upsert_batch(
            [
                ConsumptionValue(datetime(2024, 1, 1, 0, 0), 1.0),
                ConsumptionValue(datetime(2024, 1, 1, 0, 30), 0.5),
                ConsumptionValue(datetime(2024, 1, 2, 12, 0), 2.0),
            ]
        )

        daily = repo.get_daily(date(2024, 1, 1), date(2024, 1, 3))

        assert [d.period_start for d in daily] == [date(2024, 1, 1), date(2024, 1, 2)]
        assert [d.value for d in daily] == pytest.approx([1.5, 2.0])

    def test_monthly_totals(self, test_session):
        repo = ConsumptionRepository(test_session, Utility.ELECTRICITY)
        repo.upsert_batch(
            [
                ConsumptionValue(datetime(2024, 1, 5, 0, 0), 1.0),
                ConsumptionValue(datetime(2024, 1, 20, 0, 0), 1.0),
                ConsumptionValue(datetime(2024, 2, 3, 0, 0), 4.0),
            ]
        )

        monthly = repo.get_monthly(date(2024, 1, 1), date(2024, 3, 1))

        assert [m.period_start for m in monthly] == [date(2024, 1, 1), date(2024, 2, 1)]
        assert [m.value for m in monthly] == pytest.approx([2.0, 4.0])

    def test_reingest_refreshes_updated_at(self, test_session):
        repo = ConsumptionRepository(test_session, Utility.ELECTRICITY)
        reading = ConsumptionValue(datetime(2024, 1, 5, 0, 0), 1.0)
        repo.upsert_batch([reading])

        stale = datetime(2000, 1, 1)
        test_session.execute(update(ElectricityConsumption).values(updated_at=stale))

        repo.upsert_batch([ConsumptionValue(reading.timestamp, 2.0)])

        updated_at = test_session.scalar(select(ElectricityConsumption.updated_at))
        assert updated_at > stale


class TestTariffRepository:
    """Test TariffRepository."""

    def test_upsert_tariffs_overwrites_by_effective_time(self, test_session):
        repo = TariffRepository(test_session, Utility.ELECTRICITY)
        repo.upsert_tariffs(
            [
                TariffValues(
                    standing_charges=[StandingChargeValue(datetime(2024, 1, 1), 50.0)],
                    prices=[UnitPriceValue(datetime(2024, 1, 1), 25.0)],
                )
            ]
        )
        repo.upsert_tariffs(
            [
                TariffValues(
                    standing_charges=[StandingChargeValue(datetime(2024, 1, 1), 52.0)],
                    prices=[],
                )
            ]
        )

        assert repo.get_standing_charge_history() == [
            StandingChargeValue(datetime(2024, 1, 1), 52.0)
        ]
        assert repo.get_unit_price_history() == [UnitPriceValue(datetime(2024, 1, 1), 25.0)]

    def test_history_collapses_repeated_values(self, test_session):
        repo = TariffRepository(test_session, Utility.GAS)
        prices = [
            UnitPriceValue(datetime(2024, 1, day), value)
            for day, value in zip(range(1, 6), [100.0, 100.0, 150.0, 150.0, 100.0])
        ]
        repo.upsert_tariffs([TariffValues(standing_charges=[], prices=prices)])

        history = repo.get_unit_price_history()

        assert [p.value for p in history] == [100.0, 150.0, 100.0]
        assert [p.timestamp.day for p in history] == [1, 3, 5]

    def test_upsert_plans_by_tariff_id(self, test_session):
        repo = TariffRepository(test_session, Utility.ELECTRICITY)
        repo.upsert_plans([make_plan("t1", datetime(2024, 1, 1), "50", "25")])
        repo.upsert_plans([make_plan("t1", datetime(2024, 1, 1), "55", "25")])

        plans = repo.get_plans()

        assert len(plans) == 1
        assert extract_plan_rates(plans[0].plan) == (55.0, 25.0)

    def test_history_derived_from_plans(self, test_session):
        repo = TariffRepository(test_session, Utility.ELECTRICITY)
        repo.upsert_plans(
            [
                make_plan("t2", datetime(2024, 2, 1), "55", "25"),
                make_plan("t1", datetime(2024, 1, 1), "50", "25"),
            ]
        )

        assert repo.get_standing_charge_history() == [
            StandingChargeValue(datetime(2024, 1, 1), 50.0),
            StandingChargeValue(datetime(2024, 2, 1), 55.0),
        ]
        assert repo.get_unit_price_history() == [UnitPriceValue(datetime(2024, 1, 1), 25.0)]


class TestExtractPlanRates:
    """Test extract_plan_rates."""

    def test_extracts_standing_and_rate(self):
        plan = json.dumps([{"planDetail": [{"standing": "53.2"}, {"rate": "24.5"}]}])
        assert extract_plan_rates(plan) == (53.2, 24.5)

    def test_missing_values(self):
        assert extract_plan_rates(json.dumps([{"planDetail": []}])) == (None, None)

    def test_not_json(self):
        assert extract_plan_rates("not json") == (None, None)

    def test_null_plan(self):
        assert extract_plan_rates("null") == (None, None)


class TestSyncProfileRepository:
    """Test SyncProfileRepository."""

    def test_get_or_create_creates_active_profile(self, test_session):
        repo = SyncProfileRepository(test_session)

        profile = repo.get_or_create("electricity", "kWh", date(2024, 2, 1))

        assert profile.name == "electricity"
        assert profile.is_active is True
        assert profile.start_date == datetime(2024, 2, 1)
        assert profile.last_synced is None
        assert profile.base_unit == "kWh"

    def test_get_or_create_returns_existing(self, test_session):
        repo = SyncProfileRepository(test_session)
        first = repo.get_or_create("gas", "kWh", date(2024, 2, 1))

        second = repo.get_or_create("gas", "m3", date(2023, 1, 1))

        assert second.id == first.id
        assert second.start_date == datetime(2024, 2, 1)
        assert len(repo.get_all()) == 1

    def test_update_overwrites_fields(self, test_session):
        repo = SyncProfileRepository(test_session)
        profile = repo.get_or_create("electricity", "kWh", date(2024, 2, 1))

        updated = repo.update(profile.id, False, date(2024, 1, 1), date(2024, 3, 15))

        assert updated.is_active is False
        assert updated.start_date == datetime(2024, 1, 1)
        assert updated.last_synced == datetime(2024, 3, 15)

    def test_update_unknown_id_raises(self, test_session):
        with pytest.raises(NotFoundError):
            SyncProfileRepository(test_session).update(999, True, date(2024, 1, 1), None)

    def test_update_settings_earlier_start_resets_checkpoint(self, test_session):
        repo = SyncProfileRepository(test_session)
        profile = repo.get_or_create("electricity", "kWh", date(2024, 2, 1))
        repo.update(profile.id, True, date(2024, 2, 1), date(2024, 3, 15))

        updated = repo.update_settings(profile.id, True, date(2023, 6, 1))

        assert updated.start_date == datetime(2023, 6, 1)
        assert updated.last_synced is None

    def test_update_settings_later_start_keeps_checkpoint(self, test_session):
        repo = SyncProfileRepository(test_session)
        profile = repo.get_or_create("electricity", "kWh", date(2024, 2, 1))
        repo.update(profile.id, True, date(2024, 2, 1), date(2024, 3, 15))

        updated = repo.update_settings(profile.id, False, date(2024, 4, 1))

        assert updated.is_active is False
        assert updated.start_date == datetime(2024, 4, 1)
        assert updated.last_synced == datetime(2024, 3, 15)

    def test_update_settings_unknown_id_raises(self, test_session):
        with pytest.raises(NotFoundError):
            SyncProfileRepository(test_session).update_settings(42, True, date(2024, 1, 1))
