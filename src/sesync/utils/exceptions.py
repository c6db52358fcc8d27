"""Custom exception hierarchy for Smart Energy Sync."""


class SESyncError(Exception):
    """Base exception for all Smart Energy Sync errors."""

    pass


class ConfigurationError(SESyncError):
    """Missing or invalid configuration, typically absent credentials."""

    pass


class ProviderError(SESyncError):
    """Error communicating with a remote energy data provider."""

    retryable: bool = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize provider error.

        Args:
            message: Error message.
            status_code: HTTP status code if available.
        """
        super().__init__(message)
        self.status_code = status_code


class ProviderNetworkError(ProviderError):
    """Transport failure or server-side error."""

    pass


class ProviderAuthError(ProviderError):
    """Authentication with the provider failed."""

    pass


class MalformedResponseError(ProviderError):
    """Provider returned a payload that could not be parsed."""

    retryable = False


class MissingResourceError(ProviderError):
    """Requested resource is not available from the provider."""

    retryable = False


class PersistenceError(SESyncError):
    """Error with database operations."""

    pass


class NotFoundError(PersistenceError):
    """Requested row does not exist."""

    pass


class LoadError(SESyncError):
    """A data loader failed to fetch records from its provider."""

    pass


class InsertError(SESyncError):
    """A data loader failed to persist records."""

    pass


class SyncError(SESyncError):
    """Error during data synchronization."""

    pass


class ConcurrencyGuardError(SESyncError):
    """A sync pass is already running."""

    pass
