"""
Typed failures raised by the refresh pipeline and the country lookups.
Routes translate them into HTTP responses.
"""
from fastapi import status


class CountryCacheError(Exception):
    """Base class for all country cache failures."""

    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal server error"

    def to_detail(self) -> dict:
        return {"error": self.error}


class SourceUnavailable(CountryCacheError):
    """An external dataset could not be fetched or parsed."""

    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "External data source unavailable"

    SOURCE_LABELS = {
        "countries": "Countries API",
        "rates": "Exchange Rates API",
    }

    def __init__(self, source: str, cause: Exception | str | None = None):
        self.source = source
        self.cause = cause
        super().__init__(f"{source} source unavailable: {cause}")

    def to_detail(self) -> dict:
        label = self.SOURCE_LABELS.get(self.source, self.source)
        return {
            "error": self.error,
            "details": f"Could not fetch data from {label}",
        }


class InternalFailure(CountryCacheError):
    """A storage fault aborted the refresh batch."""

    def __init__(self, message: str = "Refresh failed during database update", cause=None):
        self.cause = cause
        super().__init__(message)


class RefreshInProgress(CountryCacheError):
    http_status = status.HTTP_409_CONFLICT
    error = "Refresh already in progress"


class CountryNotFound(CountryCacheError):
    http_status = status.HTTP_404_NOT_FOUND
    error = "Country not found"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Country '{name}' not found.")


class InvalidQuery(CountryCacheError):
    http_status = status.HTTP_400_BAD_REQUEST
    error = "Validation failed"

    def __init__(self, details: dict):
        self.details = details
        super().__init__(str(details))

    def to_detail(self) -> dict:
        return {"error": self.error, "details": self.details}
