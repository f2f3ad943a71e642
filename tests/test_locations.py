import re

import pytest

from conftest import FakeProvider
from travelchat.errors import ProviderRequestError, ResolutionError
from travelchat.providers.locations import LocationResolver, fallback_code

CODE = re.compile(r"[A-Z]{3}")


def test_static_table_when_provider_unavailable():
    resolver = LocationResolver(FakeProvider(available=False))
    assert resolver.resolve("New York") == "JFK"
    assert resolver.resolve("london") == "LHR"


def test_static_table_substring_match():
    assert fallback_code("Greater London") == "LHR"
    assert fallback_code("York") == "JFK"


def test_synthesized_code_is_padded():
    resolver = LocationResolver(FakeProvider(available=False))
    assert resolver.resolve("Oz") == "OZX"
    assert resolver.resolve("Zzyzx") == "ZZY"


def test_three_letters_pass_through_upper_cased():
    provider = FakeProvider()
    resolver = LocationResolver(provider)
    assert resolver.resolve("lhr") == "LHR"
    assert provider.calls == []


def test_country_is_normalized_before_lookup():
    resolver = LocationResolver(FakeProvider(available=False))
    assert resolver.resolve("France") == "CDG"


@pytest.mark.parametrize("value", ["", "   ", "123", "--!"])
def test_unresolvable_input_raises(value):
    resolver = LocationResolver(FakeProvider(available=False))
    with pytest.raises(ResolutionError):
        resolver.resolve(value)


def test_provider_prefers_city_over_airport():
    provider = FakeProvider(locations=[
        {"subType": "AIRPORT", "iataCode": "LGW"},
        {"subType": "CITY", "iataCode": "LON"},
    ])
    assert LocationResolver(provider).resolve("London") == "LON"


def test_provider_airport_when_no_city():
    provider = FakeProvider(locations=[{"subType": "AIRPORT", "iataCode": "ORY"}])
    assert LocationResolver(provider).resolve("Orly") == "ORY"


def test_invalid_provider_code_falls_back():
    provider = FakeProvider(locations=[{"subType": "CITY", "iataCode": "L1"}])
    assert LocationResolver(provider).resolve("London") == "LHR"


def test_provider_error_falls_back():
    provider = FakeProvider(errors={"lookup_location": ProviderRequestError("down", status_code=500)})
    assert LocationResolver(provider).resolve("Paris") == "CDG"


def test_provider_results_are_cached():
    provider = FakeProvider(locations=[{"subType": "CITY", "iataCode": "PAR"}])
    resolver = LocationResolver(provider)
    assert resolver.resolve("Paris") == "PAR"
    assert resolver.resolve("  paris ") == "PAR"
    assert len(provider.called("lookup_location")) == 1


@pytest.mark.parametrize("value", [
    "New York", "Oz", "Rio de Janeiro 2", "x", "St. Petersburg", "Zürich", "a-b", "lhr", "Timbuktu",
])
def test_resolved_codes_are_three_upper_letters(value):
    resolver = LocationResolver(FakeProvider(available=False))
    assert CODE.fullmatch(resolver.resolve(value))
