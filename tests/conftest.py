"""Shared test fixtures."""

from datetime import date, datetime, timedelta
from typing import Any

import pytest

from sesync.config.settings import Settings
from sesync.db.engine import Database, create_engine
from sesync.providers.base import EnergyDataProvider
from sesync.secrets import MemorySecretStore
from sesync.sync.events import EventEmitter
from sesync.sync.windows import WindowPolicy
from sesync.types import (
    ConsumptionValue,
    DataKind,
    StandingChargeValue,
    TariffRecord,
    TariffValues,
    UnitPriceValue,
    Utility,
)
from sesync.utils.exceptions import ProviderNetworkError

TODAY = date(2024, 3, 15)


class RecordingEventSink:
    """Event sink that keeps every emitted event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self.events.append((event, payload))

    def named(self, event: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.events if name == event]


class FakeProvider(EnergyDataProvider):
    """In-memory provider producing one reading per day at 00:30."""

    name = "fake"

    def __init__(
        self,
        policy: WindowPolicy | None = None,
        has_tariff: bool = True,
        fail_after: int | None = None,
        fail_utility: Utility | None = None,
    ) -> None:
        self.policy = policy or WindowPolicy.fixed_days(7)
        self.has_tariff = has_tariff
        self.fail_after = fail_after
        self.fail_utility = fail_utility
        self.calls: list[tuple[Utility, DataKind, date | None, date | None]] = []
        self.closed = False

    def _record(self, utility: Utility, kind: DataKind, start, end) -> None:
        self.calls.append((utility, kind, start, end))
        should_fail = self.fail_after is not None and len(self.calls) > self.fail_after
        if should_fail and (self.fail_utility is None or self.fail_utility == utility):
            raise ProviderNetworkError("connection reset", status_code=503)

    def has_consumption(self, utility: Utility) -> bool:
        return True

    def has_tariff_history(self, utility: Utility) -> bool:
        return self.has_tariff

    def window_policy(self, kind: DataKind) -> WindowPolicy:
        return self.policy

    async def get_consumption(self, utility: Utility, start: date, end: date):
        self._record(utility, DataKind.CONSUMPTION, start, end)
        values = []
        day = start
        while day < end:
            values.append(ConsumptionValue(datetime(day.year, day.month, day.day, 0, 30), 1.0))
            day += timedelta(days=1)
        return values

    async def get_tariff_history(
        self, utility: Utility, start: date | None = None, end: date | None = None
    ) -> list[TariffRecord]:
        self._record(utility, DataKind.TARIFF, start, end)
        return [
            TariffValues(
                standing_charges=[StandingChargeValue(datetime(2024, 1, 1), 50.0)],
                prices=[UnitPriceValue(datetime(2024, 1, 1), 25.0)],
            )
        ]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with in-memory SQLite."""
    return Settings(
        database_url="sqlite:///:memory:",
        log_level="DEBUG",
        max_retries=1,
        retry_delay=0.0,
        _env_file=None,
    )


@pytest.fixture
def database(test_settings):
    """Create test database with tables."""
    db = Database(create_engine(test_settings))
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def test_session(database):
    """Create test database session."""
    with database.session() as session:
        yield session


@pytest.fixture
def event_sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def emitter(event_sink) -> EventEmitter:
    return EventEmitter(event_sink)


@pytest.fixture
def secret_store() -> MemorySecretStore:
    return MemorySecretStore()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_provider():
    """Factory for fake providers with custom policy or failures."""
    return FakeProvider
