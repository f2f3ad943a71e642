from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ProviderClientState:
    initialized: bool
    credentials_present: bool


@dataclass(frozen=True)
class PriceConfirmation:
    original_price: float
    confirmed_price: float
    currency: str
    confirmed_offer: Dict[str, Any]
    price_changed: bool
    fare_rules: Optional[list] = None
    included_bags: Optional[dict] = None

    @property
    def difference(self) -> float:
        return round(self.confirmed_price - self.original_price, 2)


def offer_price(offer: dict) -> Optional[float]:
    price = (offer or {}).get("price") or {}
    raw = price.get("total") or price.get("grandTotal")
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


class TravelProvider(ABC):
    @abstractmethod
    def is_available(self) -> bool:
        ...

    @abstractmethod
    def search_flights(
        self,
        origin: str,
        destination: str,
        depart_date: str,
        return_date: Optional[str] = None,
        adults: int = 1,
        cabin: str = "ECONOMY",
    ) -> List[dict]:
        ...

    @abstractmethod
    def search_hotels(self, city_code: str, check_in: str, check_out: Optional[str] = None, adults: int = 1) -> List[dict]:
        ...

    @abstractmethod
    def search_points_of_interest(self, latitude: float, longitude: float, radius: int = 2) -> List[dict]:
        ...

    @abstractmethod
    def lookup_location(self, keyword: str, sub_type: Optional[str] = None) -> List[dict]:
        ...

    @abstractmethod
    def confirm_price(self, offer: dict, travelers: Optional[List[dict]] = None) -> PriceConfirmation:
        ...

    @abstractmethod
    def create_booking(
        self,
        confirmed_offer: dict,
        travelers: List[dict],
        contacts: List[dict],
        remarks: Optional[dict] = None,
    ) -> dict:
        ...
