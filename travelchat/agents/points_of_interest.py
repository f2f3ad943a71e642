from amadeus import Location

from travelchat.errors import ExtractionIncomplete, ResolutionError
from travelchat.graph.extract import extract_poi_params
from travelchat.graph.formatting import format_poi_results
from travelchat.providers.base import TravelProvider


def run_poi_agent(provider: TravelProvider, user_text: str) -> str:
    params = extract_poi_params(user_text)
    city = params.get("city")
    if not city:
        raise ExtractionIncomplete(["city"], "Which city would you like to explore?")

    # points of interest are searched by coordinates, so the city needs a geoCode
    locations = provider.lookup_location(city, Location.CITY)
    geo = next((loc.get("geoCode") for loc in locations if loc.get("geoCode")), None)
    if not geo:
        raise ResolutionError(city)

    pois = provider.search_points_of_interest(geo["latitude"], geo["longitude"])
    return format_poi_results(pois, city)
