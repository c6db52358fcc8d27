"""n3rgy consumer API client."""

from datetime import date

import httpx

from sesync.api.base import ApiClient
from sesync.api.models.responses import N3rgyConsumptionResponse, N3rgyTariffResponse
from sesync.config.settings import Settings
from sesync.types import Utility


class N3rgyClient(ApiClient):
    """Async client for the n3rgy consumer API, authenticated with a static API key."""

    provider_name = "n3rgy"

    def __init__(
        self,
        settings: Settings,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings.
            api_key: The MAC/API key registered with n3rgy.
            transport: Optional httpx transport.
        """
        super().__init__(settings, settings.n3rgy_base_url, transport)
        self._api_key = api_key

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": self._api_key}

    def _range_params(self, start: date, end: date) -> dict[str, str]:
        return {
            "start": start.strftime("%Y%m%d"),
            "end": end.strftime("%Y%m%d"),
            "output": "json",
        }

    async def get_consumption(
        self, utility: Utility, start: date, end: date
    ) -> N3rgyConsumptionResponse:
        """Get half-hourly consumption for ``[start, end)``.

        Args:
            utility: Electricity or gas.
            start: First day to include.
            end: First day to exclude.

        Returns:
            Parsed consumption response.
        """
        data = await self._request(
            "GET",
            f"/{utility.value}/consumption/1",
            params=self._range_params(start, end),
        )
        return self._parse(N3rgyConsumptionResponse, data)

    async def get_tariff(self, utility: Utility, start: date, end: date) -> N3rgyTariffResponse:
        """Get standing charges and unit prices for ``[start, end)``.

        Args:
            utility: Electricity or gas.
            start: First day to include.
            end: First day to exclude.

        Returns:
            Parsed tariff response.
        """
        data = await self._request(
            "GET",
            f"/{utility.value}/tariff/1",
            params=self._range_params(start, end),
        )
        return self._parse(N3rgyTariffResponse, data)
