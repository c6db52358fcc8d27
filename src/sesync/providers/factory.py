"""Build the configured data provider from stored credentials."""

import httpx
import structlog

from sesync.api.glowmarkt import GlowmarktClient
from sesync.api.n3rgy import N3rgyClient
from sesync.config.settings import Settings
from sesync.providers.base import EnergyDataProvider
from sesync.providers.glowmarkt import GlowmarktDataProvider
from sesync.providers.n3rgy import N3rgyDataProvider
from sesync.secrets import SecretStore, get_api_key, get_glowmarkt_credentials
from sesync.utils.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)


async def build_provider(
    settings: Settings,
    secret_store: SecretStore,
    transport: httpx.AsyncBaseTransport | None = None,
) -> EnergyDataProvider:
    """Create the provider selected by ``settings.provider``.

    Args:
        settings: Application settings.
        secret_store: Store holding the provider credentials.
        transport: Optional httpx transport passed to the API client.

    Returns:
        A ready provider. The caller owns it and must ``close()`` it.

    Raises:
        ConfigurationError: If the provider's credentials are not stored.
        ProviderError: If the provider handshake fails.
    """
    if settings.provider == "n3rgy":
        api_key = get_api_key(secret_store)
        if not api_key:
            raise ConfigurationError("No n3rgy API key stored")
        logger.debug("Building n3rgy provider")
        return N3rgyDataProvider(N3rgyClient(settings, api_key, transport))

    credentials = get_glowmarkt_credentials(secret_store)
    if credentials is None:
        raise ConfigurationError("No Glowmarkt credentials stored")
    logger.debug("Building Glowmarkt provider")
    client = GlowmarktClient(settings, credentials.username, credentials.password, transport)
    return await GlowmarktDataProvider.create(client)
