"""Glowmarkt (Bright) API client."""

from datetime import datetime
from typing import Any

import httpx
import structlog

from sesync.api.base import ApiClient
from sesync.api.models.responses import (
    GlowmarktAuthResponse,
    GlowmarktReadingsResponse,
    GlowmarktResource,
    GlowmarktTariff,
    GlowmarktTariffListResponse,
    GlowmarktVirtualEntity,
)
from sesync.config.settings import Settings
from sesync.utils.exceptions import ProviderAuthError, ProviderError

logger = structlog.get_logger(__name__)

HALF_HOUR_PERIOD = "PT30M"


class GlowmarktClient(ApiClient):
    """Async client for the Glowmarkt API.

    Requests other than ``authenticate`` carry the session token obtained from
    ``POST /auth`` and the application id.
    """

    provider_name = "glowmarkt"

    def __init__(
        self,
        settings: Settings,
        username: str,
        password: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings.
            username: Glowmarkt account username (email).
            password: Glowmarkt account password.
            transport: Optional httpx transport.
        """
        super().__init__(settings, settings.glowmarkt_base_url, transport)
        self._application_id = settings.glowmarkt_application_id
        self._username = username
        self._password = password
        self._token: str | None = None

    def _auth_headers(self) -> dict[str, str]:
        headers = {"applicationId": self._application_id}
        if self._token:
            headers["token"] = self._token
        return headers

    @property
    def is_authenticated(self) -> bool:
        """Whether a session token has been obtained."""
        return self._token is not None

    async def authenticate(self) -> None:
        """Obtain a session token.

        Raises:
            ProviderAuthError: If the credentials are rejected.
        """
        data = await self._request(
            "POST",
            "/auth",
            json={"username": self._username, "password": self._password},
            authenticated=False,
        )
        auth = self._parse(GlowmarktAuthResponse, data)
        if not auth.valid or not auth.token:
            raise ProviderAuthError("Glowmarkt rejected the supplied credentials")
        self._token = auth.token
        logger.info("Authenticated with Glowmarkt", account_id=auth.accountId)

    def _require_token(self) -> None:
        if not self._token:
            raise ProviderError("Glowmarkt client is not authenticated")

    async def get_resources(self) -> dict[str, GlowmarktResource]:
        """Get all resources of the account, keyed by resource id."""
        self._require_token()
        data = await self._request("GET", "/resource")
        resources = [self._parse(GlowmarktResource, item) for item in data or []]
        return {r.resourceId: r for r in resources}

    async def get_virtual_entities(self) -> list[GlowmarktVirtualEntity]:
        """Get the virtual entities grouping the account's resources."""
        self._require_token()
        data = await self._request("GET", "/virtualentity")
        return [self._parse(GlowmarktVirtualEntity, item) for item in data or []]

    async def get_readings(
        self,
        resource_id: str,
        start: datetime,
        end: datetime,
        period: str = HALF_HOUR_PERIOD,
    ) -> GlowmarktReadingsResponse:
        """Get summed readings for a resource.

        Args:
            resource_id: Resource id.
            start: Start instant (UTC).
            end: End instant (UTC).
            period: ISO-8601 aggregation period.

        Returns:
            Parsed readings response.
        """
        self._require_token()
        params: dict[str, Any] = {
            "from": self._format_date(start),
            "to": self._format_date(end),
            "period": period,
            "function": "sum",
            "offset": 0,
        }
        data = await self._request("GET", f"/resource/{resource_id}/readings", params=params)
        return self._parse(GlowmarktReadingsResponse, data)

    async def get_tariff_list(self, resource_id: str) -> list[GlowmarktTariff]:
        """Get every tariff plan version attached to a cost resource."""
        self._require_token()
        data = await self._request("GET", f"/resource/{resource_id}/tariff-list")
        return self._parse(GlowmarktTariffListResponse, data).data
