import logging
import re
from typing import Any, Dict, Optional, Pattern, Sequence

from travelchat.utils.country import country_to_city

logger = logging.getLogger(__name__)

MIN_PASSENGERS = 1
MAX_PASSENGERS = 9

_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?"
)
_DAY = r"\d{1,2}(?:st|nd|rd|th)?"
_YEAR = r"(?:,?\s+\d{4})?"

# "June 15th", "15 June 2027", "2027-06-15", "6/15/2027"
DATE_TEXT = (
    rf"(?:{_MONTH}\s+{_DAY}{_YEAR}"
    rf"|{_DAY}\s+(?:of\s+)?{_MONTH}{_YEAR}"
    r"|\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}[/\-]\d{1,2}(?:[/\-]\d{2,4})?)"
)

# Words that end a place name when they follow it
_PLACE_END = (
    r"(?=\s+(?:on|for|in|at|around|departing|leaving|returning|next|this|tomorrow|today|"
    r"from|with|starting|until|through|check|and|\d)\b|\s*[,.!?;]|\s*$)"
)


def _rx(p: str) -> Pattern[str]:
    return re.compile(p, re.IGNORECASE)


ROUTE_PATTERNS: Sequence[Pattern[str]] = (
    _rx(rf"\b(?:from|between)\s+([a-z][a-z .'-]*?)\s+(?:to|and)\s+([a-z][a-z .'-]*?){_PLACE_END}"),
    # "Chicago to Miami": capitalized place names only
    re.compile(r"\b([A-Z][a-zA-Z'-]*(?:\s+[A-Z][a-zA-Z'-]*)*)\s+to\s+([A-Z][a-zA-Z'-]*(?:\s+[A-Z][a-zA-Z'-]*)*)"),
)

DEPART_DATE_PATTERNS: Sequence[Pattern[str]] = (
    _rx(rf"\b(?:on|for|departing|leaving)\s+({DATE_TEXT})"),
    _rx(rf"\b({_DAY}\s+(?:of\s+)?{_MONTH}{_YEAR})"),
    _rx(rf"\b({_MONTH}\s+{_DAY}{_YEAR})"),
    _rx(r"\b(\d{4}-\d{2}-\d{2})\b"),
)

RETURN_DATE_PATTERNS: Sequence[Pattern[str]] = (
    _rx(rf"\b(?:returning|return(?:ing)?\s+on|back\s+on|coming\s+back)\s+({DATE_TEXT})"),
)

CABIN_PATTERNS: Sequence[tuple] = (
    (_rx(r"\bpremium\s+economy\b"), "PREMIUM_ECONOMY"),
    (_rx(r"\bbusiness(?:\s+class)?\b"), "BUSINESS"),
    (_rx(r"\bfirst[\s-]+class\b"), "FIRST"),
    (_rx(r"\beconomy\b|\bcoach\b"), "ECONOMY"),
)

CITY_PATTERNS: Sequence[Pattern[str]] = (
    _rx(rf"\b(?:in|at|near|around)\s+([a-z][a-z .,'-]*?){_PLACE_END}"),
    _rx(rf"\bto\s+([a-z][a-z .,'-]*?){_PLACE_END}"),
    _rx(r"\b(?:hotels?|stay|room|accommodation)(?:\s+in|\s+at|\s+near|\s+to)?\s+([a-z][a-z ,'-]*)"),
)

CHECK_IN_PATTERNS: Sequence[Pattern[str]] = (
    _rx(rf"\b(?:from|on|starting|arriving|check[\s-]*in(?:\s+on)?)\s+({DATE_TEXT})"),
)

CHECK_OUT_PATTERNS: Sequence[Pattern[str]] = (
    _rx(rf"\b(?:to|until|till|through|leaving|check[\s-]*out(?:\s+on)?)\s+({DATE_TEXT})"),
)

PASSENGER_PATTERNS: Sequence[Pattern[str]] = (
    _rx(r"\b(\d+)\s+(?:adults?|people|persons?|guests?|passengers?|travell?ers?)\b"),
    _rx(r"\bfor\s+(\d+)\b(?!\s*(?:nights?|days?|weeks?|st|nd|rd|th))"),
)

POI_CITY_PATTERNS: Sequence[Pattern[str]] = (
    _rx(rf"\b(?:in|near|around|at)\s+([a-z][a-z .'-]*?){_PLACE_END}"),
    _rx(r"\bvisit(?:ing)?\s+([a-z][a-z .'-]*?)(?=\s*[,.!?]|\s*$)"),
)


def _first_group(patterns: Sequence[Pattern[str]], text: str) -> Optional[str]:
    for p in patterns:
        m = p.search(text)
        if m:
            return m.group(1).strip(" ,.'-")
    return None


def _clean_place(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = re.sub(r"^(?:the|a)\s+", "", value.strip(" ,.'-"), flags=re.IGNORECASE)
    if not value:
        return None
    if value.islower():
        value = value.title()
    return country_to_city(value)


def clamp_passengers(raw: Any) -> int:
    try:
        n = int(raw)
    except (TypeError, ValueError):
        return MIN_PASSENGERS
    return max(MIN_PASSENGERS, min(MAX_PASSENGERS, n))


def extract_passengers(text: str) -> int:
    raw = _first_group(PASSENGER_PATTERNS, text or "")
    return clamp_passengers(raw) if raw is not None else MIN_PASSENGERS


def extract_flight_params(text: str) -> Dict[str, Any]:
    """
    Pull origin, destination and dates out of a flight request.
    Only the fields that were found are present, apart from `adults` and
    `cabin_class` which always carry a default.
    """
    text = text or ""
    params: Dict[str, Any] = {}

    for p in ROUTE_PATTERNS:
        m = p.search(text)
        if m:
            origin = _clean_place(m.group(1))
            destination = _clean_place(m.group(2))
            if origin:
                params["origin"] = origin
            if destination:
                params["destination"] = destination
            break

    depart = _first_group(DEPART_DATE_PATTERNS, text)
    if depart:
        params["depart_date"] = depart

    ret = _first_group(RETURN_DATE_PATTERNS, text)
    if ret and ret != depart:
        params["return_date"] = ret

    params["adults"] = extract_passengers(text)

    cabin = "ECONOMY"
    for p, value in CABIN_PATTERNS:
        if p.search(text):
            cabin = value
            break
    params["cabin_class"] = cabin

    logger.debug(f"Extracted flight params {params} from {text!r}")
    return params


def extract_hotel_params(text: str) -> Dict[str, Any]:
    text = text or ""
    params: Dict[str, Any] = {}

    city = _clean_place(_first_group(CITY_PATTERNS, text))
    if city:
        params["city"] = city

    check_in = _first_group(CHECK_IN_PATTERNS, text)
    if check_in:
        params["check_in"] = check_in

    check_out = _first_group(CHECK_OUT_PATTERNS, text)
    if check_out and check_out != check_in:
        params["check_out"] = check_out

    params["adults"] = extract_passengers(text)

    logger.debug(f"Extracted hotel params {params} from {text!r}")
    return params


def extract_poi_params(text: str) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    city = _clean_place(_first_group(POI_CITY_PATTERNS, text or ""))
    if city:
        params["city"] = city
    return params
