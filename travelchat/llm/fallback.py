from typing import Optional

GREETING = (
    "Hello! I'm your AI travel assistant. I can help you plan trips, find flights, "
    "book hotels, and create amazing itineraries. What would you like to explore today?"
)

APOLOGY = "I apologize, but I encountered an error processing your request. Please try again."

CAPABILITIES_REPLY = (
    "I can help you with a variety of travel-related tasks, including:\n\n"
    "1. Flight Search: Find and compare flights based on your preferences for dates, destinations, and airlines.\n\n"
    "2. Hotel Booking: Locate hotels that suit your budget and requirements, and provide booking information.\n\n"
    "3. Trip Planning: Offer suggestions for travel itineraries, including popular attractions and activities at your destination.\n\n"
    "4. Travel Advice: Provide tips on travel safety, packing, and cultural insights for different regions.\n\n"
    "5. Real-Time Updates: Access current data for flights and hotels to ensure you have the most accurate information.\n\n"
    "Let me know what you need help with, and I'll be glad to assist!"
)

FLIGHT_REPLY = (
    "I'd be happy to help you find flights. Please let me know your departure city, "
    "destination, and travel dates."
)
HOTEL_REPLY = "I can help you find hotels. What city are you visiting and when do you need accommodation?"
DEFAULT_REPLY = (
    "I'm your travel assistant. I can help you search for flights and hotels. "
    "What would you like to explore today?"
)


def canned_reply(user_text: Optional[str]) -> str:
    """Last tier of the fallback chain, keyed on coarse keywords."""
    t = (user_text or "").lower()
    if "what can you do" in t:
        return CAPABILITIES_REPLY
    if "flight" in t:
        return FLIGHT_REPLY
    if "hotel" in t:
        return HOTEL_REPLY
    return DEFAULT_REPLY
