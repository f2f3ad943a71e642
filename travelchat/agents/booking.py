import logging
from typing import Any, Dict, List, Optional

from travelchat import config
from travelchat.errors import PriceChangedError, ProviderBadRequestError, ProviderRequestError
from travelchat.providers.base import PriceConfirmation, TravelProvider, offer_price

logger = logging.getLogger(__name__)

BOOKING_GUIDANCE = (
    "I can help you with flight bookings! To proceed, I'll need:\n\n"
    "1. First, let's search for your flight\n"
    "2. Select the flight you want to book\n"
    "3. Provide passenger details\n"
    "4. Confirm and complete the booking\n\n"
    "What route would you like to book? Please provide your departure city, destination, and travel date."
)


def run_booking_guidance(provider: TravelProvider, user_text: str) -> str:
    # a chat message never carries passenger details, so booking starts from a search
    return BOOKING_GUIDANCE


def run_price_check(provider: TravelProvider, offer: dict, travelers: Optional[List[dict]] = None) -> PriceConfirmation:
    return provider.confirm_price(offer, travelers)


def run_booking_agent(
    provider: TravelProvider,
    selected_offer: dict,
    travelers: List[dict],
    contacts: List[dict],
    tolerance: float = config.PRICE_TOLERANCE,
) -> Dict[str, Any]:
    """
    Confirm price, then book. The booking call is only made when the
    confirmed price matches the quoted one within tolerance.
    """
    quoted = offer_price(selected_offer)
    if quoted is None:
        raise ProviderBadRequestError("The selected flight offer has no price.", status_code=400)

    confirmation = provider.confirm_price(selected_offer, travelers)
    if confirmation.confirmed_price is None:
        raise ProviderRequestError("Could not confirm flight price. Please try again.")

    # the adapter flag alone is not trusted
    if confirmation.price_changed or abs(quoted - confirmation.confirmed_price) > tolerance:
        logger.warning(
            f"Refusing to book: price changed from {quoted} to {confirmation.confirmed_price}"
        )
        raise PriceChangedError(
            quoted,
            confirmation.confirmed_price,
            confirmation.currency,
            confirmation.confirmed_offer,
        )

    order = provider.create_booking(confirmation.confirmed_offer, travelers, contacts)
    booked_offer = (order.get("flightOffers") or [{}])[0]
    return {
        "id": order.get("id"),
        "pnr": (order.get("associatedRecords") or [{}])[0].get("reference"),
        "price": booked_offer.get("price"),
        "travelers": order.get("travelers"),
        "itineraries": booked_offer.get("itineraries"),
        "ticketingDeadline": (order.get("ticketingAgreement") or {}).get("delay"),
    }
