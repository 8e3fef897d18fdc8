"""Stand-ins for the external sources and the HTTP transport."""

import requests

from countries_api.utils.errors import SourceUnavailable
from countries_api.utils.sources import SourceCountryEntry


class FakeCountriesSource:
    def __init__(self, payload=None, error=None):
        self.payload = payload or []
        self.error = error
        self.calls = 0

    def fetch_countries(self):
        self.calls += 1
        if self.error:
            raise self.error
        return [SourceCountryEntry.from_payload(item) for item in self.payload]


class FakeRatesSource:
    def __init__(self, rates=None, error=None):
        self.rates = rates or {}
        self.error = error
        self.calls = 0

    def fetch_rates(self):
        self.calls += 1
        if self.error:
            raise self.error
        return dict(self.rates)


def unavailable(source):
    return SourceUnavailable(source, "HTTP 503")


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body_error=None):
        self.status_code = status_code
        self.payload = payload
        self.body_error = body_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self.body_error:
            raise self.body_error
        return self.payload


class FakeHTTP:
    """Mimics the parts of the requests API the adapters use."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if self.error:
            raise self.error
        return self.response
