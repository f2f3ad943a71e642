from datetime import date, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from amadeus import ResponseError

from travelchat.errors import (
    NotInitializedError,
    PriceChangedError,
    ProviderAuthError,
    ProviderBadRequestError,
    ProviderRequestError,
)
from travelchat.providers.amadeus_provider import FLIGHT_ORDERS_PATH, PRICING_PATH, AmadeusProvider


class FakeResponseError(ResponseError):
    """A ResponseError carrying a canned HTTP response, no network involved."""

    def __init__(self, status_code, code=None, detail=None):
        Exception.__init__(self, f"[{status_code}]")
        errors = [{"code": code, "detail": detail}] if code or detail else []
        self.response = SimpleNamespace(status_code=status_code, result={"errors": errors})


def response(data, result=None):
    return SimpleNamespace(data=data, result=result or {})


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def provider(client):
    return AmadeusProvider(client=client)


def test_missing_credentials_never_initializes():
    p = AmadeusProvider()
    assert p.state.initialized is False
    assert p.state.credentials_present is False
    assert p.is_available() is False
    with pytest.raises(NotInitializedError):
        p.search_flights("JFK", "LHR", "2030-06-15")
    with pytest.raises(NotInitializedError):
        p.confirm_price({"price": {"total": "1.00"}})


def test_injected_client_is_initialized(provider):
    assert provider.state.initialized is True
    assert provider.is_available() is True


def test_flight_search_params(provider, client):
    client.shopping.flight_offers_search.get.return_value = response([{"id": "1"}])
    offers = provider.search_flights("jfk", "lhr", "2030-06-15", adults=2, cabin="BUSINESS")

    assert offers == [{"id": "1"}]
    kwargs = client.shopping.flight_offers_search.get.call_args.kwargs
    assert kwargs["originLocationCode"] == "JFK"
    assert kwargs["destinationLocationCode"] == "LHR"
    assert kwargs["departureDate"] == "2030-06-15"
    assert kwargs["adults"] == 2
    assert kwargs["travelClass"] == "BUSINESS"
    assert "returnDate" not in kwargs


def test_flight_search_moves_past_dates(provider, client):
    client.shopping.flight_offers_search.get.return_value = response([])
    provider.search_flights("JFK", "LHR", "2001-01-01", return_date="2000-12-25")

    kwargs = client.shopping.flight_offers_search.get.call_args.kwargs
    depart = date.today() + timedelta(days=1)
    assert kwargs["departureDate"] == depart.isoformat()
    assert kwargs["returnDate"] == (depart + timedelta(days=7)).isoformat()


def test_hotel_search_moves_past_dates(provider, client):
    client.reference_data.locations.hotels.by_city.get.return_value = response([{"hotelId": "H1"}])
    client.shopping.hotel_offers_search.get.return_value = response([])
    provider.search_hotels("PAR", "2020-01-01", "2019-12-30")

    kwargs = client.shopping.hotel_offers_search.get.call_args.kwargs
    check_in = date.today() + timedelta(days=1)
    assert kwargs["checkInDate"] == check_in.isoformat()
    assert kwargs["checkOutDate"] == (check_in + timedelta(days=3)).isoformat()


def test_hotel_search_without_check_out(provider, client):
    client.reference_data.locations.hotels.by_city.get.return_value = response([{"hotelId": "H1"}])
    client.shopping.hotel_offers_search.get.return_value = response([])
    provider.search_hotels("PAR", "2030-06-15")

    kwargs = client.shopping.hotel_offers_search.get.call_args.kwargs
    assert kwargs["checkInDate"] == "2030-06-15"
    assert kwargs["checkOutDate"] == "2030-06-18"


def test_not_found_is_empty(provider, client):
    client.shopping.flight_offers_search.get.side_effect = FakeResponseError(404)
    assert provider.search_flights("JFK", "LHR", "2030-06-15") == []


def test_auth_failure_suspends_provider(provider, client):
    client.shopping.flight_offers_search.get.side_effect = FakeResponseError(401, detail="bad token")
    with pytest.raises(ProviderAuthError):
        provider.search_flights("JFK", "LHR", "2030-06-15")
    assert provider.is_available() is False

    client.reference_data.locations.get.reset_mock()
    with pytest.raises(ProviderAuthError):
        provider.lookup_location("Paris")
    client.reference_data.locations.get.assert_not_called()


def test_bad_request(provider, client):
    client.shopping.flight_offers_search.get.side_effect = FakeResponseError(400, code="477", detail="INVALID FORMAT")
    with pytest.raises(ProviderBadRequestError) as exc:
        provider.search_flights("JFK", "LHR", "2030-06-15")
    assert exc.value.status_code == 400
    assert exc.value.detail == "INVALID FORMAT"


def test_invalid_passenger_message(provider, client):
    client.post.side_effect = FakeResponseError(400, code="1398")
    with pytest.raises(ProviderBadRequestError, match="Invalid passenger information"):
        provider.create_booking({"id": "1"}, [{"id": "1"}], [])


def test_price_changed_code(provider, client):
    client.post.side_effect = FakeResponseError(400, code="37200")
    with pytest.raises(PriceChangedError):
        provider.confirm_price({"price": {"total": "500.00"}})


def test_server_error(provider, client):
    client.shopping.hotel_offers_search.get.side_effect = FakeResponseError(500)
    client.reference_data.locations.hotels.by_city.get.return_value = response([{"hotelId": "H1"}])
    with pytest.raises(ProviderRequestError) as exc:
        provider.search_hotels("PAR", "2030-06-15", "2030-06-18")
    assert exc.value.status_code == 500


def test_unexpected_exception_is_wrapped(provider, client):
    client.reference_data.locations.get.side_effect = ConnectionError("reset")
    with pytest.raises(ProviderRequestError):
        provider.lookup_location("Paris")


def test_hotel_search_by_city(provider, client):
    client.reference_data.locations.hotels.by_city.get.return_value = response(
        [{"hotelId": "H1"}, {"hotelId": "H2"}, {"name": "no id"}]
    )
    client.shopping.hotel_offers_search.get.return_value = response([{"hotel": {"name": "A"}}])

    offers = provider.search_hotels("par", "2030-06-15", "2030-06-18", adults=2)

    assert offers == [{"hotel": {"name": "A"}}]
    assert client.reference_data.locations.hotels.by_city.get.call_args.kwargs["cityCode"] == "PAR"
    kwargs = client.shopping.hotel_offers_search.get.call_args.kwargs
    assert kwargs["hotelIds"] == "H1,H2"
    assert kwargs["bestRateOnly"] == "true"
    assert kwargs["adults"] == 2
    client.reference_data.locations.hotels.by_geocode.get.assert_not_called()


def test_hotel_search_falls_back_to_coordinates(provider, client):
    client.reference_data.locations.hotels.by_city.get.side_effect = FakeResponseError(500)
    client.reference_data.locations.get.return_value = response(
        [{"subType": "CITY", "iataCode": "PAR", "geoCode": {"latitude": 48.85, "longitude": 2.35}}]
    )
    client.reference_data.locations.hotels.by_geocode.get.return_value = response([{"hotelId": "G1"}])
    client.shopping.hotel_offers_search.get.return_value = response([{"hotel": {"name": "B"}}])

    offers = provider.search_hotels("PAR", "2030-06-15", "2030-06-18")

    assert offers == [{"hotel": {"name": "B"}}]
    geo_kwargs = client.reference_data.locations.hotels.by_geocode.get.call_args.kwargs
    assert geo_kwargs["latitude"] == 48.85
    assert geo_kwargs["longitude"] == 2.35
    assert client.shopping.hotel_offers_search.get.call_args.kwargs["hotelIds"] == "G1"


def test_hotel_search_without_any_hotels(provider, client):
    client.reference_data.locations.hotels.by_city.get.return_value = response([])
    client.reference_data.locations.get.return_value = response([])
    assert provider.search_hotels("XYZ", "2030-06-15", "2030-06-18") == []
    client.shopping.hotel_offers_search.get.assert_not_called()


def test_confirm_price_detects_change(provider, client):
    client.post.return_value = response(
        {"flightOffers": [{"price": {"total": "510.00", "currency": "USD"}, "fareDetailsBySegment": []}]},
        result={"included": {"bags": {"1": {"quantity": 1}}}},
    )
    confirmation = provider.confirm_price({"price": {"total": "500.00", "currency": "USD"}})

    assert client.post.call_args.args[0] == PRICING_PATH
    body = client.post.call_args.args[1]
    assert body["data"]["type"] == "flight-offers-pricing"
    assert confirmation.price_changed is True
    assert confirmation.original_price == 500.0
    assert confirmation.confirmed_price == 510.0
    assert confirmation.difference == 10.0
    assert confirmation.included_bags == {"1": {"quantity": 1}}


def test_confirm_price_within_tolerance(provider, client):
    client.post.return_value = response({"flightOffers": [{"price": {"total": "500.005"}}]})
    confirmation = provider.confirm_price({"price": {"total": "500.00"}})
    assert confirmation.price_changed is False
    assert confirmation.currency == "USD"


def test_confirm_price_without_offers(provider, client):
    client.post.return_value = response({"flightOffers": []})
    with pytest.raises(ProviderRequestError):
        provider.confirm_price({"price": {"total": "500.00"}})


def test_create_booking_body(client):
    provider = AmadeusProvider(client=client, ticketing_delay="6D")
    client.post.return_value = response({"id": "ORDER1", "associatedRecords": [{"reference": "ABC123"}]})

    order = provider.create_booking({"id": "1"}, [{"id": "1"}], [{"emailAddress": "a@b.c"}])

    assert order["id"] == "ORDER1"
    path, body = client.post.call_args.args
    assert path == FLIGHT_ORDERS_PATH
    assert body["data"]["type"] == "flight-order"
    assert body["data"]["ticketingAgreement"] == {"option": "DELAY_TO_CANCEL", "delay": "6D"}
    assert body["data"]["contacts"] == [{"emailAddress": "a@b.c"}]
