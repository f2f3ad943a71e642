import logging
import re
from typing import NamedTuple, Optional, Pattern, Sequence

from travelchat.graph.state import TravelIntent

logger = logging.getLogger(__name__)

FLIGHT = "flight"
HOTEL = "hotel"
POINT_OF_INTEREST = "pointOfInterest"
ITINERARY = "itinerary"
BOOKING = "booking"
GENERAL = "general"

CATEGORIES = (FLIGHT, HOTEL, POINT_OF_INTEREST, ITINERARY, BOOKING, GENERAL)


class IntentRule(NamedTuple):
    pattern: Pattern[str]
    category: str
    confidence: float


def _rx(p: str) -> Pattern[str]:
    return re.compile(p, re.IGNORECASE)


# Small talk and capability questions never reach a commerce intent
GREETING_PATTERNS: Sequence[Pattern[str]] = (
    _rx(r"^(?:hi|hello|hey|greetings)\W*$"),
    _rx(r"^what can you do"),
    _rx(r"^help(?:\s+me)?\W*$"),
    _rx(r"^how does this work"),
    _rx(r"^what is this"),
    _rx(r"^tell me about yourself"),
)

_PLACE = r"[a-z][a-z .'-]*?"

# Ordered most specific first. The first matching rule wins.
INTENT_RULES: Sequence[IntentRule] = (
    # booking verbs outrank every search keyword
    IntentRule(_rx(r"\b(?:book|reserve|purchase)\s+(?:a\s+|an\s+|the\s+|my\s+)?(?:tickets?|seats?|flights?|hotels?|rooms?)\b"), BOOKING, 0.95),
    IntentRule(_rx(r"\bmake\s+(?:a\s+)?(?:reservation|booking)\b"), BOOKING, 0.95),
    IntentRule(_rx(r"\bbuy\s+(?:a\s+)?(?:tickets?|seats?)\b"), BOOKING, 0.95),

    # explicit flight nouns
    IntentRule(_rx(r"\b(?:find|search|looking for|need|show me)\s+(?:me\s+)?(?:a\s+|some\s+)?(?:cheap\s+)?flights?\b"), FLIGHT, 0.9),
    IntentRule(_rx(r"\bget\s+(?:a\s+)?flights?\b"), FLIGHT, 0.9),
    IntentRule(_rx(rf"\bfly(?:ing)?\s+from\s+{_PLACE}\s+to\s+[a-z]"), FLIGHT, 0.9),
    IntentRule(_rx(rf"\bflights?\s+(?:from|between)\s+{_PLACE}\s+(?:to|and)\s+[a-z]"), FLIGHT, 0.9),
    IntentRule(_rx(r"\b(?:airplane|airport|airline|plane)\s+(?:tickets?|flights?)\b"), FLIGHT, 0.9),

    # explicit hotel noun plus a locational preposition
    IntentRule(_rx(r"\b(?:find|search|looking for|need|show me)\s+(?:me\s+)?(?:a\s+|some\s+)?(?:cheap\s+)?hotels?\b.*\b(?:in|near|at|around)\s+[a-z]"), HOTEL, 0.8),
    IntentRule(_rx(r"\b(?:hotels?|stay|accommodation|rooms?|lodging)\s+(?:in|near|at|around)\s+[a-z]"), HOTEL, 0.8),

    IntentRule(_rx(r"\b(?:things to do|attractions|sights|sightseeing|points? of interest|places to (?:visit|see))\b.*\b(?:in|near|around|at)\s+[a-z]"), POINT_OF_INTEREST, 0.8),

    IntentRule(_rx(r"\b(?:itinerary|plan\s+(?:a|my|our)\s+(?:trip|vacation|holiday)|trip\s+plan)\b"), ITINERARY, 0.75),

    # loose keyword fallbacks
    IntentRule(_rx(r"\bflights?\b.*\b(?:from|to)\b|\b(?:from|to)\b.*\bflights?\b"), FLIGHT, 0.7),
    IntentRule(_rx(r"\bhotels?\b.*\b(?:in|at|near)\b"), HOTEL, 0.7),
    IntentRule(_rx(rf"\bfrom\s+{_PLACE}\s+to\s+[a-z]"), FLIGHT, 0.7),
)


def is_small_talk(text: str) -> bool:
    t = (text or "").strip().lower()
    return any(p.search(t) for p in GREETING_PATTERNS)


def classify(user_text: str, rules: Sequence[IntentRule] = INTENT_RULES) -> Optional[TravelIntent]:
    """
    Map the latest user message to a TravelIntent, or None for small talk
    and anything no rule recognizes. Never raises.
    """
    try:
        if not isinstance(user_text, str) or not user_text.strip():
            return None

        t = user_text.strip().lower()

        if is_small_talk(t):
            logger.debug("Greeting message, skipping intent detection")
            return None

        for rule in rules:
            if rule.category not in CATEGORIES:
                logger.warning(f"Ignoring intent rule with unknown category {rule.category!r}")
                continue
            if rule.pattern.search(t):
                logger.info(f"Detected {rule.category} intent with confidence {rule.confidence}")
                return TravelIntent(
                    category=rule.category,
                    confidence=rule.confidence,
                    extracted_text=user_text,
                )

        return None
    except Exception as e:
        logger.error(f"Error detecting travel intent: {e}")
        return None
