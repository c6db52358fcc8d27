"""Shared async HTTP plumbing for the provider API clients."""

from datetime import date, datetime
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from sesync.config.settings import Settings
from sesync.utils.exceptions import (
    MalformedResponseError,
    MissingResourceError,
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
)
from sesync.utils.retry import retry_with_backoff

logger = structlog.get_logger(__name__)


class ApiClient:
    """Async JSON API client base class.

    Subclasses set ``_base_url`` and provide authentication headers through
    ``_auth_headers``. Use as an async context manager.
    """

    provider_name = "provider"

    def __init__(
        self,
        settings: Settings,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings.
            base_url: API base URL.
            transport: Optional httpx transport (used to stub the network in tests).
        """
        self._settings = settings
        self._base_url = base_url.rstrip("/")
        self._timeout = settings.api_timeout
        self._max_retries = settings.max_retries
        self._retry_delay = settings.retry_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def open(self) -> None:
        """Create the underlying HTTP connection pool."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ApiClient":
        self.open()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _auth_headers(self) -> dict[str, str]:
        return {}

    @staticmethod
    def _format_date(d: date | datetime) -> str:
        if isinstance(d, datetime):
            return d.strftime("%Y-%m-%dT%H:%M:%S")
        return d.strftime("%Y-%m-%d")

    @retry_with_backoff()
    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Any:
        """Make an API request and decode the JSON body.

        Raises:
            ProviderAuthError: On 401/403.
            MissingResourceError: On 404.
            ProviderNetworkError: On transport errors and other error statuses.
            MalformedResponseError: If the body is not JSON.
        """
        if not self._client:
            raise ProviderError("Client not initialized. Use 'async with' context manager.")

        url = f"{self._base_url}{path}"
        headers = self._auth_headers() if authenticated else {}

        logger.debug("API request", provider=self.provider_name, method=method, path=path)

        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                "API error",
                provider=self.provider_name,
                status_code=status,
                url=url,
                response=e.response.text[:500],
            )
            message = f"{self.provider_name} request failed: {e.response.text[:200]}"
            if status in (401, 403):
                raise ProviderAuthError(message, status_code=status) from e
            if status == 404:
                raise MissingResourceError(message, status_code=status) from e
            raise ProviderNetworkError(message, status_code=status) from e
        except httpx.RequestError as e:
            logger.error("Request error", provider=self.provider_name, url=url, error=str(e))
            raise ProviderNetworkError(f"{self.provider_name} request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"{self.provider_name} returned a non-JSON body for {path}"
            ) from e

    def _parse(self, model: type[BaseModel], data: Any) -> Any:
        """Validate a decoded body against a response model."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Unexpected {self.provider_name} response: {e.error_count()} validation error(s)"
            ) from e
