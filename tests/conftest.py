from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from travelchat import init_db
from travelchat.errors import GenerationError, NotInitializedError
from travelchat.graph.state import ConversationTurn
from travelchat.llm.fallback import GREETING
from travelchat.providers.base import PriceConfirmation, TravelProvider


class FakeProvider(TravelProvider):
    """
    In-memory provider. Canned results per method; `errors` maps a method
    name to the exception it should raise. Every call is recorded.
    """

    def __init__(
        self,
        available: bool = True,
        flights: Optional[List[dict]] = None,
        hotels: Optional[List[dict]] = None,
        pois: Optional[List[dict]] = None,
        locations: Optional[List[dict]] = None,
        confirmation: Optional[PriceConfirmation] = None,
        order: Optional[dict] = None,
        errors: Optional[dict] = None,
    ):
        self.available = available
        self.flights = flights or []
        self.hotels = hotels or []
        self.pois = pois or []
        self.locations = locations or []
        self.confirmation = confirmation
        self.order = order or {}
        self.errors = errors or {}
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if not self.available:
            raise NotInitializedError("provider not configured")
        if name in self.errors:
            raise self.errors[name]

    def called(self, name) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def is_available(self) -> bool:
        return self.available

    def search_flights(self, origin, destination, depart_date, return_date=None, adults=1, cabin="ECONOMY"):
        self._record("search_flights", origin, destination, depart_date, return_date, adults, cabin)
        return self.flights

    def search_hotels(self, city_code, check_in, check_out=None, adults=1):
        self._record("search_hotels", city_code, check_in, check_out, adults)
        return self.hotels

    def search_points_of_interest(self, latitude, longitude, radius=2):
        self._record("search_points_of_interest", latitude, longitude)
        return self.pois

    def lookup_location(self, keyword, sub_type=None):
        self._record("lookup_location", keyword, sub_type)
        return self.locations

    def confirm_price(self, offer, travelers=None):
        self._record("confirm_price", offer)
        return self.confirmation

    def create_booking(self, confirmed_offer, travelers, contacts, remarks=None):
        self._record("create_booking", confirmed_offer)
        return self.order


class FakeGenerator:
    def __init__(self, reply: str = "Here is a generated answer.", error: Optional[Exception] = None,
                 configured: bool = True):
        self.reply = reply
        self.error = error
        self.configured = configured
        self.calls = []

    def generate(self, system_prompt, history):
        self.calls.append(list(history))
        if not self.configured:
            raise GenerationError("not configured")
        if self.error is not None:
            raise self.error
        return self.reply


def conversation(*user_texts: str) -> List[ConversationTurn]:
    """A history that already has an opening exchange, ending in `user_texts`."""
    turns = [
        ConversationTurn("user", "hi"),
        ConversationTurn("assistant", GREETING),
    ]
    for text in user_texts:
        turns.append(ConversationTurn("user", text))
    return turns


def flight_offer(price="500.00", currency="USD", depart="2030-06-15T10:00:00",
                 arrive="2030-06-15T22:15:00", segments=None) -> dict:
    segments = segments or [{
        "departure": {"iataCode": "JFK", "at": depart},
        "arrival": {"iataCode": "LHR", "at": arrive},
        "carrierCode": "BA",
        "number": "112",
    }]
    return {
        "id": "1",
        "price": {"total": price, "grandTotal": price, "currency": currency},
        "itineraries": [{"duration": "PT7H15M", "segments": segments}],
        "travelerPricings": [{"fareDetailsBySegment": [{"cabin": "ECONOMY"}]}],
    }


def hotel_offer(name="Hotel Lutetia", total="420.00") -> dict:
    return {
        "hotel": {
            "name": name,
            "rating": "4",
            "address": {"cityName": "PARIS", "countryCode": "FR"},
            "amenities": ["WIFI", "SPA", "PARKING", "POOL"],
        },
        "offers": [{
            "price": {"total": total, "currency": "EUR"},
            "room": {"description": {"text": "Deluxe double room"}},
        }],
    }


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'travelchat.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    engine.dispose()
