"""Application command layer: status, sync triggers, settings and read paths."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime

import structlog
from pydantic import BaseModel, ConfigDict, Field

from sesync.config.settings import Settings
from sesync.costs import DailyCost, calculate_daily_costs
from sesync.db.engine import Database
from sesync.db.repositories.consumption import ConsumptionRepository
from sesync.db.repositories.sync_profile import SyncProfileRepository
from sesync.db.repositories.tariff import TariffRepository
from sesync.providers.base import EnergyDataProvider
from sesync.providers.factory import build_provider
from sesync.secrets import (
    API_KEY,
    GlowmarktCredentials,
    SecretStore,
    clear_all_secrets,
    get_glowmarkt_credentials,
    store_glowmarkt_credentials,
)
from sesync.sync.events import EventEmitter, EventSink
from sesync.sync.orchestrator import SyncOrchestrator, SyncSummary, spawn_download_task
from sesync.sync.state import AppState
from sesync.types import (
    ConsumptionValue,
    PeriodTotal,
    StandingChargeValue,
    TariffPlanValue,
    UnitPriceValue,
    Utility,
)
from sesync.utils.exceptions import ConfigurationError, ProviderError

logger = structlog.get_logger(__name__)

ProviderFactory = Callable[[Settings, SecretStore], Awaitable[EnergyDataProvider]]


class AppStatus(BaseModel):
    """Answer to "is a sync running and is a provider configured"."""

    model_config = ConfigDict(populate_by_name=True)

    is_downloading: bool = Field(alias="isDownloading")
    is_client_available: bool = Field(alias="isClientAvailable")


class EnergyProfile(BaseModel):
    """Read model of a stream's sync profile."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    energy_profile_id: int = Field(validation_alias="id", serialization_alias="energyProfileId")
    name: str
    is_active: bool = Field(serialization_alias="isActive")
    start_date: datetime = Field(serialization_alias="startDate")
    last_synced: datetime | None = Field(default=None, serialization_alias="lastSynced")
    base_unit: str = Field(serialization_alias="baseUnit")


class EnergyProfileUpdate(BaseModel):
    """User edit of a stream's settings."""

    model_config = ConfigDict(populate_by_name=True)

    energy_profile_id: int = Field(alias="energyProfileId")
    is_active: bool = Field(alias="isActive")
    start_date: date = Field(alias="startDate")


@dataclass(frozen=True)
class TariffHistory:
    """Collapsed tariff history of one utility."""

    standing_charges: list[StandingChargeValue]
    unit_prices: list[UnitPriceValue]
    plans: list[TariffPlanValue]


class EnergyService:
    """Entry point used by front ends.

    Owns the sync flags, the event emitter and the orchestrator. Database
    work runs in a worker thread so the event loop is never blocked.
    """

    def __init__(
        self,
        settings: Settings,
        database: Database,
        secret_store: SecretStore,
        sink: EventSink | None = None,
        provider_factory: ProviderFactory = build_provider,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the service.

        Args:
            settings: Application settings.
            database: Shared database.
            secret_store: Credential store.
            sink: Receiver of progress and status events.
            provider_factory: Builds a provider from settings and stored credentials.
            today: Clock returning the current date.
        """
        self.settings = settings
        self.database = database
        self.secret_store = secret_store
        self.state = AppState()
        self.emitter = EventEmitter(sink)
        self.orchestrator = SyncOrchestrator(database, settings, self.state, self.emitter, today)
        self._provider_factory = provider_factory

    def get_app_status(self) -> AppStatus:
        return AppStatus(
            is_downloading=self.state.is_downloading,
            is_client_available=self.state.is_client_available,
        )

    async def _create_provider(self) -> EnergyDataProvider | None:
        """Build the configured provider; None when sync is inactive or the handshake fails."""
        try:
            provider = await self._provider_factory(self.settings, self.secret_store)
        except ConfigurationError as e:
            logger.info("Sync inactive", reason=str(e))
            self.state.set_client_available(False)
            return None
        except ProviderError as e:
            logger.error(
                "Failed to create data provider",
                provider=self.settings.provider,
                error=str(e),
            )
            self.state.set_client_available(False)
            return None

        self.state.set_client_available(True)
        return provider

    async def fetch_data(self) -> asyncio.Task | None:
        """Start a background sync pass.

        Returns:
            The scheduled task, or None if a pass is already running or no
            provider could be built.
        """
        if self.state.is_downloading:
            logger.info("Sync already in progress, not starting another")
            return None
        provider = await self._create_provider()
        if provider is None:
            return None
        return spawn_download_task(self.orchestrator, provider, close_provider=True)

    async def sync_now(self) -> SyncSummary | None:
        """Run a sync pass and wait for it.

        Returns:
            Summary of the pass, or None if no provider could be built or a
            pass was already running.
        """
        provider = await self._create_provider()
        if provider is None:
            return None
        try:
            return await self.orchestrator.check_and_download_new_data(provider)
        finally:
            await provider.close()

    async def test_connection(self) -> bool:
        """Check that the stored credentials produce a working provider."""
        provider = await self._create_provider()
        if provider is None:
            return False
        await provider.close()
        return True

    def _get_profiles(self) -> list[EnergyProfile]:
        with self.database.session() as session:
            profiles = SyncProfileRepository(session).get_all()
            return [EnergyProfile.model_validate(p) for p in profiles]

    async def get_energy_profiles(self) -> list[EnergyProfile]:
        return await asyncio.to_thread(self._get_profiles)

    def _apply_profile_updates(self, updates: list[EnergyProfileUpdate]) -> list[EnergyProfile]:
        with self.database.session() as session:
            repo = SyncProfileRepository(session)
            updated = []
            for update in updates:
                logger.debug(
                    "Updating profile settings",
                    energy_profile_id=update.energy_profile_id,
                    is_active=update.is_active,
                    start_date=str(update.start_date),
                )
                profile = repo.update_settings(
                    update.energy_profile_id, update.is_active, update.start_date
                )
                updated.append(EnergyProfile.model_validate(profile))
            return updated

    async def update_energy_profile_settings(
        self, updates: list[EnergyProfileUpdate], trigger_sync: bool = True
    ) -> list[EnergyProfile]:
        """Apply profile edits, then start a background sync so new history is fetched.

        Args:
            updates: Profile edits, applied in one transaction.
            trigger_sync: Start a background sync pass afterwards.

        Raises:
            NotFoundError: If a profile id does not exist; no edit is applied.
        """
        profiles = await asyncio.to_thread(self._apply_profile_updates, updates)
        if trigger_sync:
            await self.fetch_data()
        return profiles

    def _read(self, fn: Callable[..., list]) -> list:
        with self.database.session() as session:
            return fn(session)

    async def get_raw_consumption(
        self, utility: Utility, start: date, end: date
    ) -> list[ConsumptionValue]:
        return await asyncio.to_thread(
            self._read, lambda s: ConsumptionRepository(s, utility).get_raw(start, end)
        )

    async def get_daily_consumption(
        self, utility: Utility, start: date, end: date
    ) -> list[PeriodTotal]:
        return await asyncio.to_thread(
            self._read, lambda s: ConsumptionRepository(s, utility).get_daily(start, end)
        )

    async def get_monthly_consumption(
        self, utility: Utility, start: date, end: date
    ) -> list[PeriodTotal]:
        return await asyncio.to_thread(
            self._read, lambda s: ConsumptionRepository(s, utility).get_monthly(start, end)
        )

    def _tariff_history(self, utility: Utility) -> TariffHistory:
        with self.database.session() as session:
            repo = TariffRepository(session, utility)
            return TariffHistory(
                standing_charges=repo.get_standing_charge_history(),
                unit_prices=repo.get_unit_price_history(),
                plans=repo.get_plans(),
            )

    async def get_tariff_history(self, utility: Utility) -> TariffHistory:
        return await asyncio.to_thread(self._tariff_history, utility)

    def _cost_history(self, utility: Utility, start: date, end: date) -> list[DailyCost]:
        with self.database.session() as session:
            daily = ConsumptionRepository(session, utility).get_daily(start, end)
            tariffs = TariffRepository(session, utility)
            standing_charges = tariffs.get_standing_charge_history()
            unit_prices = tariffs.get_unit_price_history()
        return calculate_daily_costs(daily, standing_charges, unit_prices)

    async def get_cost_history(self, utility: Utility, start: date, end: date) -> list[DailyCost]:
        """Daily costs in ``[start, end)``; days without a known tariff are omitted."""
        return await asyncio.to_thread(self._cost_history, utility, start, end)

    async def clear_all_data(self) -> None:
        """Drop and recreate every table."""
        await asyncio.to_thread(self.database.reset)
        logger.info("Cleared all data")

    async def reset(self) -> None:
        """Clear all data and forget every stored credential."""
        await self.clear_all_data()
        clear_all_secrets(self.secret_store)
        self.state.set_client_available(False)
        self.emitter.settings_updated()
        logger.info("Reset application state")

    async def store_api_key(self, api_key: str) -> asyncio.Task | None:
        """Store the n3rgy API key and start a sync with it."""
        self.secret_store.set(API_KEY, api_key)
        self.emitter.settings_updated()
        return await self.fetch_data()

    async def store_glowmarkt_credentials(
        self, username: str, password: str
    ) -> asyncio.Task | None:
        """Store Glowmarkt credentials and start a sync with them."""
        store_glowmarkt_credentials(self.secret_store, username, password)
        self.emitter.settings_updated()
        return await self.fetch_data()

    def get_glowmarkt_credentials(self) -> GlowmarktCredentials | None:
        return get_glowmarkt_credentials(self.secret_store)
