from datetime import date

import pytest

from travelchat.graph.extract import (
    clamp_passengers,
    extract_flight_params,
    extract_hotel_params,
    extract_poi_params,
)
from travelchat.utils.country import country_to_city
from travelchat.utils.dates import normalize_date, tomorrow

TODAY = date(2026, 3, 1)


# ---------------------------
# Flights
# ---------------------------
def test_flight_route_and_date():
    params = extract_flight_params("Find flights from New York to London on June 15th")
    assert params["origin"] == "New York"
    assert params["destination"] == "London"
    assert params["depart_date"] == "June 15th"
    assert params["adults"] == 1
    assert params["cabin_class"] == "ECONOMY"
    assert "return_date" not in params


def test_capitalized_route_without_from():
    params = extract_flight_params("Chicago to Miami on July 15 please")
    assert params["origin"] == "Chicago"
    assert params["destination"] == "Miami"
    assert params["depart_date"] == "July 15"


def test_lowercase_places_are_title_cased():
    params = extract_flight_params("flights from san francisco to tokyo on may 3rd")
    assert params["origin"] == "San Francisco"
    assert params["destination"] == "Tokyo"


def test_countries_become_cities():
    params = extract_flight_params("flights from UK to France on May 3rd")
    assert params["origin"] == "London"
    assert params["destination"] == "Paris"


def test_cabin_and_passengers():
    params = extract_flight_params("Find business class flights from Boston to Seattle for 3 adults on March 3rd")
    assert params["cabin_class"] == "BUSINESS"
    assert params["adults"] == 3
    assert params["origin"] == "Boston"
    assert params["destination"] == "Seattle"


def test_return_date():
    params = extract_flight_params("flights from Paris to Rome on June 1st returning June 8th")
    assert params["depart_date"] == "June 1st"
    assert params["return_date"] == "June 8th"


def test_missing_fields_are_absent_not_errors():
    params = extract_flight_params("I want a flight")
    assert "origin" not in params
    assert "destination" not in params
    assert "depart_date" not in params


@pytest.mark.parametrize("raw, expected", [
    ("3", 3), (0, 1), (-2, 1), (15, 9), ("abc", 1), (None, 1),
])
def test_clamp_passengers(raw, expected):
    assert clamp_passengers(raw) == expected


def test_passenger_count_is_clamped_in_text():
    assert extract_flight_params("flights from Paris to Rome for 15 passengers")["adults"] == 9


# ---------------------------
# Hotels / points of interest
# ---------------------------
def test_hotel_params():
    params = extract_hotel_params("Find a hotel in Paris from July 10th to July 15th for 2 guests")
    assert params == {
        "city": "Paris",
        "check_in": "July 10th",
        "check_out": "July 15th",
        "adults": 2,
    }


def test_hotel_city_without_dates():
    params = extract_hotel_params("I need a place to stay in tokyo")
    assert params["city"] == "Tokyo"
    assert "check_in" not in params


def test_poi_city():
    assert extract_poi_params("What are some things to do in Rome?") == {"city": "Rome"}
    assert extract_poi_params("what should I see") == {}


# ---------------------------
# Dates
# ---------------------------
def test_normalize_date_fills_current_year():
    assert normalize_date("June 15th", today=TODAY) == "2026-06-15"
    assert normalize_date("15 June", today=TODAY) == "2026-06-15"


def test_normalize_date_moves_past_dates_to_tomorrow():
    assert normalize_date("January 5th", today=TODAY) == tomorrow(TODAY).isoformat()
    assert normalize_date("2020-01-01", today=TODAY) == "2026-03-02"


def test_normalize_date_unparseable_is_tomorrow():
    assert normalize_date("whenever suits", today=TODAY) == "2026-03-02"


@pytest.mark.parametrize("text", ["June 15th", "2026-12-24", "January 5th", "3rd of August", "garbage"])
def test_normalize_date_is_idempotent(text):
    once = normalize_date(text, today=TODAY)
    assert normalize_date(once, today=TODAY) == once
    assert date.fromisoformat(once) >= tomorrow(TODAY) or date.fromisoformat(once) == TODAY


# ---------------------------
# Countries
# ---------------------------
@pytest.mark.parametrize("name, city", [
    ("France", "Paris"),
    ("united kingdom", "London"),
    ("uk", "London"),
    ("USA", "New York"),
    ("FR", "Paris"),
    ("FRA", "FRA"),
    ("CAN", "CAN"),
    ("Springfield", "Springfield"),
    ("  Berlin ", "Berlin"),
])
def test_country_to_city(name, city):
    assert country_to_city(name) == city
