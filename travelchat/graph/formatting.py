import logging
import re
from datetime import date, datetime
from typing import Any, List, Optional

from dateutil import parser as dtparser

from travelchat import config
from travelchat.utils.country import iso2_to_country_name

logger = logging.getLogger(__name__)


def _get(d: Any, *keys, default=None):
    """Safely walk nested dicts/lists."""
    cur = d
    for k in keys:
        if isinstance(cur, dict) and k in cur:
            cur = cur[k]
        elif isinstance(cur, list) and isinstance(k, int) and -len(cur) <= k < len(cur):
            cur = cur[k]
        else:
            return default
    return cur if cur is not None else default


def _text(value: Any, default: Optional[str] = None) -> Optional[str]:
    # Amadeus descriptions come either as plain strings or {"text": ..., "lang": ...}
    if isinstance(value, dict):
        value = value.get("text")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _money(currency: Optional[str], amount: Any) -> str:
    return f"{currency} {amount}" if currency else str(amount)


def _fmt_datetime(raw: Optional[str]) -> str:
    if not raw:
        return "Unknown"
    try:
        return dtparser.isoparse(raw).strftime("%a, %b %d %Y, %H:%M")
    except (TypeError, ValueError):
        return raw


def _fmt_date(raw: str) -> str:
    try:
        return date.fromisoformat(raw).strftime("%a, %b %d %Y")
    except (TypeError, ValueError):
        return raw


def format_iso_duration(duration: str) -> str:
    """'PT2H30M' -> '2h 30m'"""
    if not duration:
        return ""
    m = re.match(r"PT(?:(\d+)H)?(?:(\d+)M)?", duration)
    if not m:
        return duration
    return f"{m.group(1) or '0'}h {m.group(2) or '0'}m"


def calculate_total_journey_time(segments: List[dict]) -> str:
    """Last arrival minus first departure, layovers included."""
    if not segments:
        return ""
    departure: datetime = dtparser.isoparse(segments[0]["departure"]["at"])
    arrival: datetime = dtparser.isoparse(segments[-1]["arrival"]["at"])
    minutes = int((arrival - departure).total_seconds() // 60)
    return f"{minutes // 60}h {minutes % 60}m"


def _cabin_of(offer: dict, segment: dict) -> str:
    return (
        segment.get("cabin")
        or _get(offer, "travelerPricings", 0, "fareDetailsBySegment", 0, "cabin")
        or _get(segment, "travelerPricings", 0, "fareDetailsBySegment", 0, "cabin")
        or "ECONOMY"
    ).title()


def _flight_block(index: int, offer: dict) -> str:
    itinerary = offer["itineraries"][0]
    segments = itinerary["segments"]
    first, last = segments[0], segments[-1]

    lines = [f"**Option {index}**"]
    lines.append(f"🛫 Departure: {_fmt_datetime(_get(first, 'departure', 'at'))} from {_get(first, 'departure', 'iataCode', default='?')}")
    lines.append(f"🛬 Arrival: {_fmt_datetime(_get(last, 'arrival', 'at'))} at {_get(last, 'arrival', 'iataCode', default='?')}")

    try:
        lines.append(f"⏱️ Duration: {calculate_total_journey_time(segments)}")
    except (KeyError, TypeError, ValueError, AttributeError):
        if itinerary.get("duration"):
            lines.append(f"⏱️ Duration: {format_iso_duration(itinerary['duration'])}")

    if len(segments) > 1:
        stops = ", ".join(_get(s, "arrival", "iataCode", default="?") for s in segments[:-1])
        lines.append(f"✈️ Stops: {len(segments) - 1} ({stops})")
    else:
        lines.append("✈️ Direct Flight")

    if first.get("carrierCode") and first.get("number"):
        lines.append(f"🔢 Flight: {first['carrierCode']}{first['number']}")

    price = offer.get("price") or {}
    amount = price.get("grandTotal") or price.get("total")
    if amount is not None:
        lines.append(f"💰 Price: {_money(price.get('currency'), amount)}")

    lines.append(f"🪑 Cabin: {_cabin_of(offer, first)}")
    return "\n".join(lines)


def format_flight_results(offers: List[dict], origin: str, destination: str, date_text: str) -> str:
    if not offers:
        return (
            f"I couldn't find any flights from {origin} to {destination} on {date_text}. "
            "Would you like to try different dates or locations?"
        )

    n = len(offers)
    cap = config.MAX_FLIGHT_RESULTS
    response = f"I found {n} flight option{'s' if n > 1 else ''} from {origin} to {destination} on {date_text}:\n\n"

    for i, offer in enumerate(offers[:cap]):
        try:
            response += _flight_block(i + 1, offer) + "\n\n"
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f"Error formatting flight {i}: {e}")
            continue

    if n > cap:
        response += f"... and {n - cap} more options available.\n\n"

    response += "Would you like to book any of these flights or see more options?"
    return response


def _hotel_block(index: int, item: dict) -> str:
    hotel = item["hotel"]
    lines = [f"**{index}. {hotel.get('name') or 'Hotel'}**"]

    if hotel.get("rating"):
        lines.append(f"⭐ Rating: {hotel['rating']}/5")

    city_name = _get(hotel, "address", "cityName")
    if city_name:
        country = iso2_to_country_name(_get(hotel, "address", "countryCode", default=""))
        lines.append(f"📍 Location: {city_name.title()}" + (f", {country}" if country else ""))

    offer = _get(item, "offers", 0)
    if isinstance(offer, dict):
        price = offer.get("price") or {}
        if price.get("total") is not None:
            lines.append(f"💰 Price: {_money(price.get('currency'), price['total'])}")

        room = offer.get("room") or {}
        if room.get("description"):
            lines.append(f"🛏️ Room: {_text(room['description'], 'Standard Room')}")

        cancellation = _get(offer, "policies", "cancellation", "description")
        if cancellation:
            lines.append(f"ℹ️ {_text(cancellation, 'See hotel for cancellation policy')}")

    amenities = hotel.get("amenities") or []
    if amenities:
        lines.append(f"🏨 Amenities: {', '.join(str(a) for a in amenities[:3])}")

    return "\n".join(lines)


def format_hotel_results(offers: List[dict], city: str, check_in: str, check_out: str, adults: int) -> str:
    if not offers:
        return (
            f"I couldn't find any available hotels in {city} for those dates. "
            "Would you like to try different dates or a nearby city?"
        )

    n = len(offers)
    cap = config.MAX_HOTEL_RESULTS
    response = f"I found {n} hotel{'s' if n > 1 else ''} in {city}:\n\n"
    response += f"🗓️ Check-in: {_fmt_date(check_in)}\n"
    response += f"🗓️ Check-out: {_fmt_date(check_out)}\n"
    response += f"👥 Guests: {adults} adult{'s' if adults > 1 else ''}\n\n"

    for i, item in enumerate(offers[:cap]):
        try:
            response += _hotel_block(i + 1, item) + "\n\n"
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f"Error formatting hotel {i}: {e}")
            continue

    if n > cap:
        response += f"... and {n - cap} more hotels available.\n\n"

    response += "Would you like more details about any of these hotels or to modify your search criteria?"
    return response


def format_poi_results(pois: List[dict], city: str) -> str:
    if not pois:
        return (
            f"I couldn't find any points of interest around {city}. "
            "Would you like to try a different location?"
        )

    n = len(pois)
    cap = config.MAX_POI_RESULTS
    response = f"Here are some places to explore in {city}:\n\n"

    for i, poi in enumerate(pois[:cap]):
        try:
            line = f"{i + 1}. **{poi['name']}**"
            category = poi.get("category")
            if category:
                line += f" ({str(category).replace('_', ' ').title()})"
            tags = poi.get("tags") or []
            if tags:
                line += f"\n   {', '.join(str(t) for t in tags[:3])}"
            response += line + "\n"
        except (KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error formatting point of interest {i}: {e}")
            continue

    if n > cap:
        response += f"... and {n - cap} more places.\n"

    response += "\nWould you like flights or hotels for this trip?"
    return response
