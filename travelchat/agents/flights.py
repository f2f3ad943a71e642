import logging

from travelchat.errors import ExtractionIncomplete
from travelchat.graph.extract import extract_flight_params
from travelchat.graph.formatting import format_flight_results
from travelchat.providers.base import TravelProvider
from travelchat.providers.locations import LocationResolver
from travelchat.utils.dates import normalize_date

logger = logging.getLogger(__name__)


def run_flights_agent(provider: TravelProvider, resolver: LocationResolver, user_text: str) -> str:
    params = extract_flight_params(user_text)
    logger.info(f"Processing flight intent with params {params}")

    if not params.get("origin") or not params.get("destination"):
        raise ExtractionIncomplete(
            [k for k in ("origin", "destination") if not params.get(k)],
            "I'd be happy to search for flights for you. Please provide both the departure city "
            "and destination city. For example: 'Find flights from New York to London on June 15th'",
        )

    if not params.get("depart_date"):
        raise ExtractionIncomplete(
            ["depart_date"],
            f"I found that you want to travel from {params['origin']} to {params['destination']}. "
            "What date would you like to depart?",
        )

    origin_code = resolver.resolve(params["origin"])
    destination_code = resolver.resolve(params["destination"])
    depart_date = normalize_date(params["depart_date"])
    return_date = normalize_date(params["return_date"]) if params.get("return_date") else None

    offers = provider.search_flights(
        origin_code,
        destination_code,
        depart_date,
        return_date=return_date,
        adults=params["adults"],
        cabin=params["cabin_class"],
    )
    return format_flight_results(offers, params["origin"], params["destination"], params["depart_date"])
