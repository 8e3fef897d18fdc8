"""Source adapters: shape checks and failure mapping."""

import pytest
import requests

from countries_api.utils.errors import SourceUnavailable
from countries_api.utils.sources import CountriesSource, RatesSource
from fakes import FakeHTTP, FakeResponse


def test_countries_source_normalizes_entries():
    http = FakeHTTP(FakeResponse(payload=[
        {"name": "Nigeria", "capital": "Abuja", "region": "Africa", "population": 10,
         "flag": "https://flagcdn.com/ng.svg", "currencies": [{"code": "NGN", "name": "Naira"}]},
        {"name": "Antarctica", "population": 1000},
    ]))

    entries = CountriesSource(url="http://countries", timeout=5, http=http).fetch_countries()

    assert [e.name for e in entries] == ["Nigeria", "Antarctica"]
    assert entries[0].currency_codes == ["NGN"]
    assert entries[0].flag_url == "https://flagcdn.com/ng.svg"
    assert entries[1].currency_codes == []
    assert http.requests == [("http://countries", 5)]


def test_countries_source_rejects_non_list_payload():
    http = FakeHTTP(FakeResponse(payload={"message": "rate limited"}))

    with pytest.raises(SourceUnavailable) as exc:
        CountriesSource(url="http://countries", http=http).fetch_countries()
    assert exc.value.source == "countries"


@pytest.mark.parametrize("http", [
    FakeHTTP(FakeResponse(status_code=500)),
    FakeHTTP(error=requests.exceptions.Timeout("timed out")),
    FakeHTTP(error=requests.exceptions.ConnectionError("refused")),
    FakeHTTP(FakeResponse(body_error=ValueError("Expecting value"))),
])
def test_countries_source_transport_failures(http):
    with pytest.raises(SourceUnavailable) as exc:
        CountriesSource(url="http://countries", http=http).fetch_countries()
    assert exc.value.source == "countries"
    assert exc.value.cause is not None


def test_rates_source_returns_rates_table():
    http = FakeHTTP(FakeResponse(payload={"result": "success", "rates": {"USD": 1, "NGN": 1600.5}}))

    rates = RatesSource(url="http://rates", http=http).fetch_rates()

    assert rates == {"USD": 1.0, "NGN": 1600.5}
    assert isinstance(rates["USD"], float)


def test_rates_source_drops_invalid_values():
    http = FakeHTTP(FakeResponse(payload={"rates": {"USD": 1, "BAD": "n/a", "NEG": -2, "NIL": None, "ZER": 0}}))

    assert RatesSource(url="http://rates", http=http).fetch_rates() == {"USD": 1.0, "ZER": 0.0}


@pytest.mark.parametrize("payload", [{}, {"rates": []}, {"rates": "USD"}, [1, 2]])
def test_rates_source_rejects_bad_shape(payload):
    http = FakeHTTP(FakeResponse(payload=payload))

    with pytest.raises(SourceUnavailable) as exc:
        RatesSource(url="http://rates", http=http).fetch_rates()
    assert exc.value.source == "rates"


def test_rates_source_non_success_status():
    http = FakeHTTP(FakeResponse(status_code=404))

    with pytest.raises(SourceUnavailable) as exc:
        RatesSource(url="http://rates", http=http).fetch_rates()
    assert exc.value.to_detail() == {
        "error": "External data source unavailable",
        "details": "Could not fetch data from Exchange Rates API",
    }


def test_rates_source_drops_non_finite_values():
    http = FakeHTTP(FakeResponse(payload={"rates": {
        "USD": 1, "INF": float("inf"), "NAN": float("nan"), "HUGE": 10**400,
    }}))

    assert RatesSource(url="http://rates", http=http).fetch_rates() == {"USD": 1.0}
