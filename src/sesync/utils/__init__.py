"""Utility modules for Smart Energy Sync."""

from sesync.utils.exceptions import (
    ConcurrencyGuardError,
    ConfigurationError,
    InsertError,
    LoadError,
    MalformedResponseError,
    MissingResourceError,
    NotFoundError,
    PersistenceError,
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    SESyncError,
    SyncError,
)
from sesync.utils.retry import retry_with_backoff

__all__ = [
    "ConcurrencyGuardError",
    "ConfigurationError",
    "InsertError",
    "LoadError",
    "MalformedResponseError",
    "MissingResourceError",
    "NotFoundError",
    "PersistenceError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderNetworkError",
    "SESyncError",
    "SyncError",
    "retry_with_backoff",
]
