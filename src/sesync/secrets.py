"""Credential storage backed by the OS keychain."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass

import keyring
import structlog
from keyring.errors import KeyringError, PasswordDeleteError

from sesync.utils.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

API_KEY = "api_key"
GLOWMARKT_CREDENTIALS = "glowmarkt_credentials"
LEGACY_GLOWMARKT_USERNAME = "glowmarkt_username"
LEGACY_GLOWMARKT_PASSWORD = "glowmarkt_password"

ALL_SECRET_NAMES = (
    API_KEY,
    GLOWMARKT_CREDENTIALS,
    LEGACY_GLOWMARKT_USERNAME,
    LEGACY_GLOWMARKT_PASSWORD,
)


@dataclass(frozen=True)
class GlowmarktCredentials:
    """Glowmarkt account username and password."""

    username: str
    password: str

    def to_secret(self) -> str:
        return json.dumps({"username": self.username, "password": self.password})

    @classmethod
    def from_secret(cls, secret: str) -> "GlowmarktCredentials":
        try:
            data = json.loads(secret)
            return cls(username=data["username"], password=data["password"])
        except (ValueError, KeyError, TypeError) as e:
            raise ConfigurationError("Stored Glowmarkt credentials are unreadable") from e


class SecretStore(ABC):
    """Named secrets under one service name."""

    @abstractmethod
    def get(self, name: str) -> str | None:
        """Return the secret, or None if it is not stored."""

    @abstractmethod
    def set(self, name: str, secret: str) -> None:
        """Store or replace a secret."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove a secret; removing an absent secret is not an error."""


class KeyringSecretStore(SecretStore):
    """Secret store using the platform keyring (Keychain, Secret Service, ...)."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name

    def get(self, name: str) -> str | None:
        try:
            return keyring.get_password(self.service_name, name)
        except KeyringError as e:
            raise ConfigurationError(f"Failed to read secret '{name}': {e}") from e

    def set(self, name: str, secret: str) -> None:
        try:
            keyring.set_password(self.service_name, name, secret)
        except KeyringError as e:
            raise ConfigurationError(f"Failed to store secret '{name}': {e}") from e

    def delete(self, name: str) -> None:
        try:
            keyring.delete_password(self.service_name, name)
        except PasswordDeleteError:
            pass
        except KeyringError as e:
            raise ConfigurationError(f"Failed to delete secret '{name}': {e}") from e


class MemorySecretStore(SecretStore):
    """Process-local secret store, for tests and ephemeral runs."""

    def __init__(self, secrets: dict[str, str] | None = None) -> None:
        self.secrets: dict[str, str] = dict(secrets or {})

    def get(self, name: str) -> str | None:
        return self.secrets.get(name)

    def set(self, name: str, secret: str) -> None:
        self.secrets[name] = secret

    def delete(self, name: str) -> None:
        self.secrets.pop(name, None)


def get_api_key(store: SecretStore) -> str | None:
    """Get the stored n3rgy API key."""
    return store.get(API_KEY)


def store_glowmarkt_credentials(store: SecretStore, username: str, password: str) -> None:
    """Store Glowmarkt credentials as one combined secret."""
    store.set(GLOWMARKT_CREDENTIALS, GlowmarktCredentials(username, password).to_secret())


def get_glowmarkt_credentials(store: SecretStore) -> GlowmarktCredentials | None:
    """Get Glowmarkt credentials, migrating legacy split entries on first read.

    The combined secret is read first. If it is absent and both legacy
    entries exist, they are written as the combined secret and then deleted.

    Returns:
        The credentials, or None if none are stored.
    """
    combined = store.get(GLOWMARKT_CREDENTIALS)
    if combined is not None:
        return GlowmarktCredentials.from_secret(combined)

    username = store.get(LEGACY_GLOWMARKT_USERNAME)
    password = store.get(LEGACY_GLOWMARKT_PASSWORD)
    if username is None or password is None:
        return None

    credentials = GlowmarktCredentials(username=username, password=password)
    store.set(GLOWMARKT_CREDENTIALS, credentials.to_secret())
    store.delete(LEGACY_GLOWMARKT_USERNAME)
    store.delete(LEGACY_GLOWMARKT_PASSWORD)
    logger.info("Migrated legacy Glowmarkt credentials to combined secret")
    return credentials


def clear_all_secrets(store: SecretStore) -> None:
    """Delete every credential the application stores."""
    for name in ALL_SECRET_NAMES:
        store.delete(name)
