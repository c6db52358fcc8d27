"""Tests for the application service layer."""

from datetime import date, datetime

import pytest
import pytest_asyncio

from sesync.secrets import API_KEY
from sesync.service import EnergyProfileUpdate, EnergyService
from sesync.sync.events import SETTINGS_UPDATED
from sesync.types import Utility
from sesync.utils.exceptions import ConfigurationError, NotFoundError, ProviderAuthError

TODAY = date(2024, 3, 15)


@pytest.fixture
def provider_factory(fake_provider):
    async def factory(settings, secret_store):
        return fake_provider

    return factory


@pytest.fixture
def service(test_settings, database, secret_store, event_sink, provider_factory):
    return EnergyService(
        test_settings,
        database,
        secret_store,
        sink=event_sink,
        provider_factory=provider_factory,
        today=lambda: TODAY,
    )


@pytest_asyncio.fixture
async def synced_service(service):
    await service.sync_now()
    return service


class TestStatus:
    """Test status and provider creation."""

    def test_initial_status(self, service):
        status = service.get_app_status()
        assert status.model_dump(by_alias=True) == {
            "isDownloading": False,
            "isClientAvailable": False,
        }

    @pytest.mark.asyncio
    async def test_missing_credentials(self, test_settings, database, secret_store):
        async def unconfigured(settings, store):
            raise ConfigurationError("No Glowmarkt credentials stored")

        service = EnergyService(test_settings, database, secret_store, provider_factory=unconfigured)

        assert await service.fetch_data() is None
        assert not service.get_app_status().is_client_available
        assert not await service.test_connection()

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, test_settings, database, secret_store):
        async def rejected(settings, store):
            raise ProviderAuthError("bad password", status_code=401)

        service = EnergyService(test_settings, database, secret_store, provider_factory=rejected)

        assert await service.sync_now() is None
        assert not service.get_app_status().is_client_available

    @pytest.mark.asyncio
    async def test_fetch_during_pass_skips_provider(
        self, test_settings, database, secret_store, fake_provider
    ):
        built = []

        async def factory(settings, store):
            built.append(settings.provider)
            return fake_provider

        service = EnergyService(test_settings, database, secret_store, provider_factory=factory)
        assert service.state.try_start_download()

        assert await service.fetch_data() is None
        assert built == []
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_connection_ok(self, service, fake_provider):
        assert await service.test_connection()
        assert service.get_app_status().is_client_available
        assert fake_provider.closed


class TestSync:
    """Test sync triggers."""

    @pytest.mark.asyncio
    async def test_sync_now(self, service, fake_provider):
        summary = await service.sync_now()

        assert summary.success
        assert fake_provider.closed
        assert not service.get_app_status().is_downloading

    @pytest.mark.asyncio
    async def test_fetch_data_runs_in_background(self, service, fake_provider):
        task = await service.fetch_data()

        summary = await task

        assert summary.success
        assert fake_provider.closed

    @pytest.mark.asyncio
    async def test_store_api_key(self, service, secret_store, event_sink):
        task = await service.store_api_key("new-key")
        await task

        assert secret_store.get(API_KEY) == "new-key"
        assert event_sink.named(SETTINGS_UPDATED) == [{}]

    @pytest.mark.asyncio
    async def test_store_glowmarkt_credentials(self, service, event_sink):
        task = await service.store_glowmarkt_credentials("me@example.com", "pw")
        await task

        assert service.get_glowmarkt_credentials().username == "me@example.com"
        assert len(event_sink.named(SETTINGS_UPDATED)) == 1


class TestProfiles:
    """Test energy profile reads and edits."""

    @pytest.mark.asyncio
    async def test_get_energy_profiles(self, synced_service):
        profiles = await synced_service.get_energy_profiles()

        assert [p.name for p in profiles] == ["electricity", "gas"]
        dumped = profiles[0].model_dump(by_alias=True)
        assert dumped["isActive"] is True
        assert dumped["lastSynced"] == datetime(2024, 3, 15)
        assert "energyProfileId" in dumped

    @pytest.mark.asyncio
    async def test_earlier_start_clears_checkpoint(self, synced_service):
        electricity = (await synced_service.get_energy_profiles())[0]
        update = EnergyProfileUpdate.model_validate(
            {
                "energyProfileId": electricity.energy_profile_id,
                "isActive": True,
                "startDate": "2024-01-01",
            }
        )

        [updated] = await synced_service.update_energy_profile_settings(
            [update], trigger_sync=False
        )

        assert updated.start_date == datetime(2024, 1, 1)
        assert updated.last_synced is None

    @pytest.mark.asyncio
    async def test_later_start_keeps_checkpoint(self, synced_service):
        gas = (await synced_service.get_energy_profiles())[1]
        update = EnergyProfileUpdate(
            energy_profile_id=gas.energy_profile_id, is_active=False, start_date=date(2024, 3, 1)
        )

        [updated] = await synced_service.update_energy_profile_settings(
            [update], trigger_sync=False
        )

        assert not updated.is_active
        assert updated.last_synced == datetime(2024, 3, 15)

    @pytest.mark.asyncio
    async def test_unknown_profile(self, synced_service):
        update = EnergyProfileUpdate(
            energy_profile_id=999, is_active=True, start_date=date(2024, 1, 1)
        )
        with pytest.raises(NotFoundError):
            await synced_service.update_energy_profile_settings([update], trigger_sync=False)


class TestReads:
    """Test consumption, tariff and cost reads."""

    @pytest.mark.asyncio
    async def test_consumption_reads(self, synced_service):
        raw = await synced_service.get_raw_consumption(
            Utility.GAS, date(2024, 3, 1), date(2024, 3, 3)
        )
        daily = await synced_service.get_daily_consumption(
            Utility.GAS, date(2024, 3, 1), date(2024, 3, 3)
        )
        monthly = await synced_service.get_monthly_consumption(
            Utility.GAS, date(2024, 2, 1), date(2024, 4, 1)
        )

        assert len(raw) == 2
        assert [d.period_start for d in daily] == [date(2024, 3, 1), date(2024, 3, 2)]
        assert [(m.period_start, m.value) for m in monthly] == [
            (date(2024, 2, 1), 29.0),
            (date(2024, 3, 1), 14.0),
        ]

    @pytest.mark.asyncio
    async def test_tariff_history(self, synced_service):
        history = await synced_service.get_tariff_history(Utility.ELECTRICITY)

        assert [sc.value for sc in history.standing_charges] == [50.0]
        assert [p.value for p in history.unit_prices] == [25.0]
        assert history.plans == []

    @pytest.mark.asyncio
    async def test_cost_history(self, synced_service):
        costs = await synced_service.get_cost_history(
            Utility.ELECTRICITY, date(2024, 3, 1), date(2024, 3, 3)
        )

        assert [(c.day, c.cost_pence) for c in costs] == [
            (date(2024, 3, 1), 75.0),
            (date(2024, 3, 2), 75.0),
        ]


class TestReset:
    """Test data and credential reset."""

    @pytest.mark.asyncio
    async def test_clear_all_data(self, synced_service, secret_store):
        secret_store.set(API_KEY, "key")

        await synced_service.clear_all_data()

        assert await synced_service.get_energy_profiles() == []
        assert secret_store.get(API_KEY) == "key"

    @pytest.mark.asyncio
    async def test_reset(self, synced_service, secret_store, event_sink):
        secret_store.set(API_KEY, "key")

        await synced_service.reset()

        assert await synced_service.get_energy_profiles() == []
        assert secret_store.secrets == {}
        assert event_sink.named(SETTINGS_UPDATED) == [{}]
        assert not synced_service.get_app_status().is_client_available
