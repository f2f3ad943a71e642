import logging
from datetime import timedelta
from typing import Any, Callable, List, Optional

from amadeus import Client, ResponseError, Location

from travelchat import config
from travelchat.errors import (
    NotInitializedError,
    PriceChangedError,
    ProviderAuthError,
    ProviderBadRequestError,
    ProviderError,
    ProviderRequestError,
)
from travelchat.providers.base import PriceConfirmation, ProviderClientState, TravelProvider, offer_price
from travelchat.utils.dates import ensure_future, parse_date, tomorrow

logger = logging.getLogger(__name__)

PRICE_CHANGED_CODE = "37200"
INVALID_PASSENGER_CODE = "1398"

PRICING_PATH = "/v1/shopping/flight-offers/pricing?include=detailed-fare-rules,bags"
FLIGHT_ORDERS_PATH = "/v1/booking/flight-orders"


class AmadeusProvider(TravelProvider):
    """
    Typed wrapper over the Amadeus self-service APIs.

    State is fixed at construction: without credentials the adapter is never
    initialized and every call raises NotInitializedError before touching the
    network. A 401 from Amadeus suspends the adapter for the rest of the
    process, so later calls fail fast with ProviderAuthError.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        hostname: str = "test",
        client: Any = None,
        currency: str = "USD",
        price_tolerance: float = 0.01,
        ticketing_delay: str = "6D",
        default_nights: int = 3,
    ):
        credentials_present = bool(client_id and client_secret) or client is not None

        if client is None and credentials_present:
            try:
                client = Client(
                    client_id=client_id,
                    client_secret=client_secret,
                    hostname=hostname,
                )
                logger.info(f"Amadeus client initialized for the {hostname} environment")
            except Exception as e:
                logger.error(f"Failed to initialize Amadeus client: {e}")
                client = None
        elif not credentials_present:
            logger.error(
                "Amadeus API credentials are missing. "
                "Set AMADEUS_CLIENT_ID and AMADEUS_CLIENT_SECRET to enable live travel data."
            )

        self.client = client
        self.state = ProviderClientState(
            initialized=client is not None,
            credentials_present=credentials_present,
        )
        self.currency = currency
        self.price_tolerance = price_tolerance
        self.ticketing_delay = ticketing_delay
        self.default_nights = default_nights
        self._suspended = False

    @classmethod
    def from_env(cls) -> "AmadeusProvider":
        return cls(
            client_id=config.AMADEUS_CLIENT_ID,
            client_secret=config.AMADEUS_CLIENT_SECRET,
            hostname=config.AMADEUS_HOSTNAME,
            currency=config.AMADEUS_CURRENCY,
            price_tolerance=config.PRICE_TOLERANCE,
            ticketing_delay=config.TICKETING_DELAY,
            default_nights=config.DEFAULT_HOTEL_NIGHTS,
        )

    # ---------------------------
    # Plumbing
    # ---------------------------
    def is_available(self) -> bool:
        return self.state.initialized and not self._suspended

    def _ensure_ready(self) -> None:
        if not self.state.initialized:
            raise NotInitializedError(
                "Amadeus client is not initialized. Please check your credentials in the .env file."
            )
        if self._suspended:
            raise ProviderAuthError(
                "Amadeus calls are suspended after an authentication failure.", status_code=401
            )

    def _translate(self, e: ResponseError, label: str) -> ProviderError:
        response = getattr(e, "response", None)
        status = getattr(response, "status_code", None)
        body = getattr(response, "result", None)
        errors = body.get("errors") if isinstance(body, dict) else None
        first = errors[0] if errors else {}
        code = str(first.get("code") or "")
        detail = first.get("detail") or first.get("title")

        logger.error(f"Amadeus {label} failed with status {status}: {body}")

        if status == 401:
            self._suspended = True
            return ProviderAuthError(
                "Authentication failed. Please check your Amadeus API credentials.",
                status_code=401,
                detail=detail,
            )
        if status == 400:
            if code == PRICE_CHANGED_CODE:
                return PriceChangedError(None, None)
            if code == INVALID_PASSENGER_CODE:
                return ProviderBadRequestError(
                    "Invalid passenger information. Please check all details.",
                    status_code=400,
                    detail=detail,
                )
            return ProviderBadRequestError(f"Bad request: {label}", status_code=400, detail=detail)
        return ProviderRequestError(f"{label} failed", status_code=status, detail=detail)

    def _call(self, label: str, fn: Callable, *args, empty_on_not_found: bool = True, **kwargs):
        """Run one SDK call; 404 becomes an empty result, anything else a typed error."""
        try:
            return fn(*args, **kwargs)
        except ResponseError as e:
            status = getattr(getattr(e, "response", None), "status_code", None)
            if status == 404 and empty_on_not_found:
                logger.info(f"Amadeus {label}: no results")
                return None
            raise self._translate(e, label) from e
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"Amadeus {label} failed: {e}")
            raise ProviderRequestError(f"{label} failed: {e}") from e

    # ---------------------------
    # Reference data
    # ---------------------------
    def lookup_location(self, keyword: str, sub_type: Optional[str] = None) -> List[dict]:
        self._ensure_ready()
        resp = self._call(
            "location lookup",
            self.client.reference_data.locations.get,
            keyword=keyword,
            subType=sub_type or Location.ANY,  # AIRPORT,CITY
        )
        return list(resp.data or []) if resp is not None else []

    def search_points_of_interest(self, latitude: float, longitude: float, radius: int = 2) -> List[dict]:
        self._ensure_ready()
        resp = self._call(
            "points of interest search",
            self.client.reference_data.locations.points_of_interest.get,
            latitude=latitude,
            longitude=longitude,
            radius=radius,
        )
        return list(resp.data or []) if resp is not None else []

    # ---------------------------
    # Shopping
    # ---------------------------
    def search_flights(
        self,
        origin: str,
        destination: str,
        depart_date: str,
        return_date: Optional[str] = None,
        adults: int = 1,
        cabin: str = "ECONOMY",
        max_results: int = 10,
    ) -> List[dict]:
        self._ensure_ready()

        depart = ensure_future(parse_date(depart_date) or tomorrow())
        params = {
            "originLocationCode": origin.upper(),
            "destinationLocationCode": destination.upper(),
            "departureDate": depart.isoformat(),
            "adults": adults,
            "travelClass": cabin,
            "currencyCode": self.currency,
            "max": max_results,
        }
        if return_date:
            ret = parse_date(return_date)
            if ret is None or ret < depart:
                logger.warning("Return date is before departure date, using departure date + 7 days")
                ret = depart + timedelta(days=7)
            params["returnDate"] = ret.isoformat()

        logger.info(
            f"Searching flights: {params['originLocationCode']} to {params['destinationLocationCode']} "
            f"on {params['departureDate']}"
            + (f" returning {params['returnDate']}" if "returnDate" in params else "")
        )
        resp = self._call("flight search", self.client.shopping.flight_offers_search.get, **params)
        offers = list(resp.data or []) if resp is not None else []
        logger.info(f"Found {len(offers)} flight offers")
        return offers

    def _hotel_ids_by_city(self, city_code: str, limit: int = 20) -> List[str]:
        resp = self._call(
            "hotel list",
            self.client.reference_data.locations.hotels.by_city.get,
            cityCode=city_code.upper(),
        )
        hotels = (resp.data or []) if resp is not None else []
        return [h.get("hotelId") for h in hotels if h.get("hotelId")][:limit]

    def _hotel_ids_by_geocode(self, city_code: str, radius: int = 5, limit: int = 20) -> List[str]:
        cities = self.lookup_location(city_code, Location.CITY)
        geo = next((c.get("geoCode") for c in cities if c.get("geoCode")), None)
        if not geo:
            return []
        logger.info(f"Searching hotels by coordinates: {geo.get('latitude')}, {geo.get('longitude')}")
        resp = self._call(
            "hotel list by coordinates",
            self.client.reference_data.locations.hotels.by_geocode.get,
            latitude=geo.get("latitude"),
            longitude=geo.get("longitude"),
            radius=radius,
            radiusUnit="KM",
        )
        hotels = (resp.data or []) if resp is not None else []
        return [h.get("hotelId") for h in hotels if h.get("hotelId")][:limit]

    def search_hotels(self, city_code: str, check_in: str, check_out: Optional[str] = None, adults: int = 1) -> List[dict]:
        self._ensure_ready()

        start = ensure_future(parse_date(check_in) or tomorrow())
        end = parse_date(check_out) if check_out else None
        if end is None or end <= start:
            logger.warning(f"Check-out date is not after check-in, using check-in + {self.default_nights} nights")
            end = start + timedelta(days=self.default_nights)
        logger.info(f"Searching hotels in {city_code} from {start} to {end}")

        try:
            hotel_ids = self._hotel_ids_by_city(city_code)
        except ProviderAuthError:
            raise
        except ProviderError as e:
            logger.warning(f"Could not get hotel list for {city_code}: {e}")
            hotel_ids = []

        if not hotel_ids:
            hotel_ids = self._hotel_ids_by_geocode(city_code)
        if not hotel_ids:
            return []

        resp = self._call(
            "hotel offers search",
            self.client.shopping.hotel_offers_search.get,
            hotelIds=",".join(hotel_ids),
            adults=adults,
            checkInDate=start.isoformat(),
            checkOutDate=end.isoformat(),
            currency=self.currency,
            bestRateOnly="true",
        )
        offers = list(resp.data or []) if resp is not None else []
        logger.info(f"Found {len(offers)} hotel offers")
        return offers

    # ---------------------------
    # Booking
    # ---------------------------
    def confirm_price(self, offer: dict, travelers: Optional[List[dict]] = None) -> PriceConfirmation:
        self._ensure_ready()

        body: dict = {"data": {"type": "flight-offers-pricing", "flightOffers": [offer]}}
        if travelers:
            body["data"]["travelers"] = travelers

        resp = self._call(
            "flight price confirmation",
            self.client.post,
            PRICING_PATH,
            body,
            empty_on_not_found=False,
        )
        data = resp.data or {}
        confirmed_offers = data.get("flightOffers") or []
        if not confirmed_offers:
            raise ProviderRequestError("Could not confirm flight price. Please try again.")

        confirmed = confirmed_offers[0]
        original_price = offer_price(offer) or 0.0
        confirmed_price = offer_price(confirmed)
        if confirmed_price is None:
            raise ProviderRequestError("Price confirmation returned no price.")

        changed = abs(original_price - confirmed_price) > self.price_tolerance
        if changed:
            logger.warning(f"PRICE CHANGED! Original: {original_price}, New: {confirmed_price}")

        result = resp.result if isinstance(getattr(resp, "result", None), dict) else {}
        return PriceConfirmation(
            original_price=original_price,
            confirmed_price=confirmed_price,
            currency=(confirmed.get("price") or {}).get("currency") or self.currency,
            confirmed_offer=confirmed,
            price_changed=changed,
            fare_rules=confirmed.get("fareDetailsBySegment"),
            included_bags=(result.get("included") or {}).get("bags"),
        )

    def create_booking(
        self,
        confirmed_offer: dict,
        travelers: List[dict],
        contacts: List[dict],
        remarks: Optional[dict] = None,
    ) -> dict:
        self._ensure_ready()

        body = {
            "data": {
                "type": "flight-order",
                "flightOffers": [confirmed_offer],
                "travelers": travelers,
                "remarks": remarks or {
                    "general": [{
                        "subType": "GENERAL_MISCELLANEOUS",
                        "text": "Booking created via travelchat",
                    }]
                },
                "ticketingAgreement": {
                    "option": "DELAY_TO_CANCEL",
                    "delay": self.ticketing_delay,
                },
                "contacts": contacts,
            }
        }
        resp = self._call(
            "flight booking",
            self.client.post,
            FLIGHT_ORDERS_PATH,
            body,
            empty_on_not_found=False,
        )
        order = resp.data or {}
        records = order.get("associatedRecords") or [{}]
        logger.info(f"Flight booking created. PNR: {records[0].get('reference', 'N/A')}, order: {order.get('id')}")
        return order
