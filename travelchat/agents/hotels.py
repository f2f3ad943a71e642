import logging
from datetime import date, timedelta

from travelchat import config
from travelchat.errors import ExtractionIncomplete
from travelchat.graph.extract import extract_hotel_params
from travelchat.graph.formatting import format_hotel_results
from travelchat.providers.base import TravelProvider
from travelchat.providers.locations import LocationResolver
from travelchat.utils.dates import normalize_date

logger = logging.getLogger(__name__)

DEFAULT_NIGHTS = config.DEFAULT_HOTEL_NIGHTS


def run_hotels_agent(provider: TravelProvider, resolver: LocationResolver, user_text: str) -> str:
    params = extract_hotel_params(user_text)
    logger.info(f"Processing hotel intent with params {params}")

    # ask only one thing at a time
    if not params.get("city"):
        raise ExtractionIncomplete(
            ["city"],
            "I'd be happy to help you find hotels. Which city are you looking to stay in?",
        )
    if not params.get("check_in"):
        raise ExtractionIncomplete(
            ["check_in"],
            f"I can look for hotels in {params['city']}. What is your check-in date?",
        )

    city_code = resolver.resolve(params["city"])

    check_in = date.fromisoformat(normalize_date(params["check_in"]))
    check_out = None
    if params.get("check_out"):
        check_out = date.fromisoformat(normalize_date(params["check_out"]))
    if check_out is None or check_out <= check_in:
        check_out = check_in + timedelta(days=DEFAULT_NIGHTS)

    logger.info(
        f"Searching hotels in {params['city']} ({city_code}) from {check_in} to {check_out} "
        f"for {params['adults']} adults"
    )
    offers = provider.search_hotels(city_code, check_in.isoformat(), check_out.isoformat(), adults=params["adults"])
    return format_hotel_results(offers, params["city"], check_in.isoformat(), check_out.isoformat(), params["adults"])
