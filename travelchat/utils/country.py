import pycountry
from typing import Optional


# Colloquial names pycountry does not know about
COUNTRY_ALIASES = {
    "uk": "GB",
    "england": "GB",
    "britain": "GB",
    "great britain": "GB",
    "scotland": "GB",
    "usa": "US",
    "america": "US",
    "united states": "US",
    "uae": "AE",
    "emirates": "AE",
    "holland": "NL",
    "south korea": "KR",
    "korea": "KR",
    "russia": "RU",
}

# ISO-2 country code -> the city used to represent it in searches
COUNTRY_CITIES = {
    "GB": "London",
    "US": "New York",
    "AE": "Dubai",
    "AU": "Sydney",
    "CA": "Toronto",
    "CN": "Beijing",
    "IN": "Delhi",
    "JP": "Tokyo",
    "FR": "Paris",
    "DE": "Berlin",
    "ES": "Madrid",
    "IT": "Rome",
    "NL": "Amsterdam",
    "IE": "Dublin",
    "PT": "Lisbon",
    "TR": "Istanbul",
    "TH": "Bangkok",
    "SG": "Singapore",
    "KR": "Seoul",
    "MX": "Mexico City",
    "BR": "Sao Paulo",
    "RU": "Moscow",
    "EG": "Cairo",
}


def iso2_to_country_name(code: str) -> Optional[str]:
    """
    Convert ISO-2 country code (e.g. 'IN') to country name ('India')
    """
    if not code:
        return None

    country = pycountry.countries.get(alpha_2=code.upper())
    return country.name if country else None


def country_code(name: str) -> Optional[str]:
    """
    ISO-2 code for a country name, alias or upper-case ISO-2 code; None if
    `name` is not a country. Three-letter input is never treated as a
    country since it collides with airport codes (FRA, CAN, AUS).
    """
    raw = (name or "").strip()
    key = raw.lower()
    if not key:
        return None
    if key in COUNTRY_ALIASES:
        return COUNTRY_ALIASES[key]
    if len(key) == 2:
        country = pycountry.countries.get(alpha_2=raw) if raw.isupper() else None
        return country.alpha_2 if country else None
    if len(key) == 3:
        return None
    try:
        return pycountry.countries.lookup(key).alpha_2
    except LookupError:
        return None


def country_to_city(name: str) -> str:
    """
    Replace a country-level place name with its representative city.
    Anything that is not a known country is returned unchanged (stripped).
    """
    raw = (name or "").strip()
    code = country_code(raw)
    if code and code in COUNTRY_CITIES:
        return COUNTRY_CITIES[code]
    return raw
