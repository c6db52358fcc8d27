"""n3rgy consumer API data provider."""

from datetime import date

import structlog

from sesync.api.n3rgy import N3rgyClient
from sesync.providers.base import EnergyDataProvider
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

logger = structlog.get_logger(__name__)


class N3rgyDataProvider(EnergyDataProvider):
    """Provider backed by the n3rgy consumer API.

    Both utilities always expose consumption and range-based tariff history.
    Requests span at most one calendar month.
    """

    name = "n3rgy"

    def __init__(self, client: N3rgyClient) -> None:
        """Initialize the provider.

        Args:
            client: n3rgy API client; the provider takes ownership of it.
        """
        self._client = client
        self._client.open()

    def has_consumption(self, utility: Utility) -> bool:
        return True

    def has_tariff_history(self, utility: Utility) -> bool:
        return True

    def window_policy(self, kind: DataKind) -> WindowPolicy:
        return WindowPolicy.monthly()

    async def get_consumption(
        self, utility: Utility, start: date, end: date
    ) -> list[ConsumptionValue]:
        response = await self._client.get_consumption(utility, start, end)
        values = [ConsumptionValue(timestamp=r.timestamp, value=r.value) for r in response.values]
        logger.debug(
            "Fetched consumption",
            provider=self.name,
            utility=utility.value,
            start=str(start),
            end=str(end),
            count=len(values),
        )
        return values

    async def get_tariff_history(
        self,
        utility: Utility,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TariffRecord]:
        if start is None or end is None:
            raise ValueError("n3rgy tariff history requires a date range")

        response = await self._client.get_tariff(utility, start, end)
        return [
            TariffValues(
                standing_charges=[
                    StandingChargeValue(start_date=sc.startDate, value=sc.value)
                    for sc in tariff.standingCharges
                ],
                prices=[
                    UnitPriceValue(timestamp=p.timestamp, value=p.value) for p in tariff.prices
                ],
            )
            for tariff in response.values
        ]

    async def close(self) -> None:
        await self._client.aclose()
