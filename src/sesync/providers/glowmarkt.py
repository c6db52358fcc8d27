"""Glowmarkt (Bright) data provider."""

import json
from dataclasses import dataclass
from datetime import date, datetime, time, timezone

import structlog

from sesync.api.glowmarkt import HALF_HOUR_PERIOD, GlowmarktClient
from sesync.api.models.responses import GlowmarktTariff
from sesync.providers.base import EnergyDataProvider
from sesync.sync.windows import WindowPolicy
from sesync.types import ConsumptionValue, DataKind, TariffPlanValue, TariffRecord, Utility
from sesync.utils.exceptions import MissingResourceError

logger = structlog.get_logger(__name__)

DCC_SOURCED_ENTITY = "DCC Sourced"
DEFAULT_EFFECTIVE_DATE = datetime(1900, 1, 1)
UNKNOWN_DISPLAY_NAME = "<unknown>"

# The readings endpoint accepts at most 10 days of half-hourly data.
CONSUMPTION_WINDOW_DAYS = 7


@dataclass
class ResourceIds:
    """Resource ids discovered from the DCC sourced virtual entity."""

    electricity_consumption: str | None = None
    electricity_cost: str | None = None
    gas_consumption: str | None = None
    gas_cost: str | None = None

    def consumption(self, utility: Utility) -> str | None:
        return getattr(self, f"{utility.value}_consumption")

    def cost(self, utility: Utility) -> str | None:
        return getattr(self, f"{utility.value}_cost")


def _to_utc_midnight(d: date) -> datetime:
    return datetime.combine(d, time.min)


def _epoch_to_naive_utc(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def _to_plan_value(tariff: GlowmarktTariff) -> TariffPlanValue:
    effective = tariff.effective_date or tariff.from_ or DEFAULT_EFFECTIVE_DATE
    return TariffPlanValue(
        tariff_id=tariff.id,
        plan=json.dumps(tariff.plan),
        effective_date=effective.replace(tzinfo=None),
        display_name=tariff.display_name or UNKNOWN_DISPLAY_NAME,
    )


class GlowmarktDataProvider(EnergyDataProvider):
    """Provider backed by the Glowmarkt API.

    Build instances with ``await GlowmarktDataProvider.create(client)``: creation
    authenticates and discovers the account's resources, and fails if either
    step fails.
    """

    name = "glowmarkt"

    def __init__(
        self,
        client: GlowmarktClient,
        resource_ids: ResourceIds,
        base_units: dict[Utility, str] | None = None,
    ) -> None:
        self._client = client
        self._resource_ids = resource_ids
        self._base_units = base_units or {}

    @classmethod
    async def create(cls, client: GlowmarktClient) -> "GlowmarktDataProvider":
        """Authenticate and discover resources.

        Args:
            client: Glowmarkt API client; the provider takes ownership of it.

        Returns:
            Ready-to-use provider.

        Raises:
            ProviderError: If authentication or discovery fails.
        """
        client.open()
        try:
            await client.authenticate()
            resource_ids, base_units = await cls._discover_resources(client)
        except Exception:
            await client.aclose()
            raise

        logger.info(
            "Created Glowmarkt data provider",
            electricity_consumption=resource_ids.electricity_consumption is not None,
            electricity_cost=resource_ids.electricity_cost is not None,
            gas_consumption=resource_ids.gas_consumption is not None,
            gas_cost=resource_ids.gas_cost is not None,
        )
        return cls(client, resource_ids, base_units)

    @staticmethod
    async def _discover_resources(
        client: GlowmarktClient,
    ) -> tuple[ResourceIds, dict[Utility, str]]:
        all_resources = await client.get_resources()
        virtual_entities = await client.get_virtual_entities()

        resource_ids = ResourceIds()
        base_units: dict[Utility, str] = {}
        fields = {
            "electricity consumption": "electricity_consumption",
            "electricity cost": "electricity_cost",
            "gas consumption": "gas_consumption",
            "gas cost": "gas_cost",
        }

        for entity in virtual_entities:
            if entity.name != DCC_SOURCED_ENTITY:
                continue
            for ref in entity.resources:
                resource = all_resources.get(ref.resourceId)
                if resource is None or resource.name not in fields:
                    continue
                setattr(resource_ids, fields[resource.name], resource.resourceId)
                if resource.name.endswith("consumption") and resource.baseUnit:
                    utility = Utility(resource.name.split()[0])
                    base_units[utility] = resource.baseUnit
            break

        return resource_ids, base_units

    def has_consumption(self, utility: Utility) -> bool:
        return self._resource_ids.consumption(utility) is not None

    def has_tariff_history(self, utility: Utility) -> bool:
        return self._resource_ids.cost(utility) is not None

    def window_policy(self, kind: DataKind) -> WindowPolicy:
        if kind is DataKind.CONSUMPTION:
            return WindowPolicy.fixed_days(CONSUMPTION_WINDOW_DAYS)
        return WindowPolicy.unbounded()

    def base_unit(self, utility: Utility) -> str:
        return self._base_units.get(utility, super().base_unit(utility))

    async def get_consumption(
        self, utility: Utility, start: date, end: date
    ) -> list[ConsumptionValue]:
        resource_id = self._resource_ids.consumption(utility)
        if resource_id is None:
            raise MissingResourceError(f"{utility.value} consumption")

        response = await self._client.get_readings(
            resource_id,
            _to_utc_midnight(start),
            _to_utc_midnight(end),
            HALF_HOUR_PERIOD,
        )
        return [
            ConsumptionValue(timestamp=_epoch_to_naive_utc(ts), value=float(value))
            for ts, value in response.data
        ]

    async def get_tariff_history(
        self,
        utility: Utility,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TariffRecord]:
        """Fetch every tariff plan version; the range is ignored."""
        resource_id = self._resource_ids.cost(utility)
        if resource_id is None:
            raise MissingResourceError(f"{utility.value} cost")

        tariffs = await self._client.get_tariff_list(resource_id)
        return [_to_plan_value(t) for t in tariffs]

    async def close(self) -> None:
        await self._client.aclose()
