class CountryServiceError(Exception):
    """Base class for errors surfaced by the countries service."""


class UpstreamUnavailable(CountryServiceError):
    """Raised when external API data cannot be fetched."""

    def __init__(self, source, cause):
        self.source = source
        self.cause = cause
        super().__init__(f"Could not fetch data from {source}: {cause}")


class RefreshFailed(CountryServiceError):
    """Raised when writing a refresh failed and the transaction was rolled back."""

    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"Refresh failed and was rolled back: {cause}")


class NotFound(CountryServiceError):
    message = "Not found"

    def __init__(self, message=None):
        super().__init__(message or self.message)


class CountryNotFound(NotFound):
    message = "Country not found"


class SummaryImageNotFound(NotFound):
    message = "Summary image not found"
