from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TypedDict, Optional, Any


@dataclass(frozen=True)
class ConversationTurn:
    role: str                       # "user" | "assistant" | "system"
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class TravelIntent:
    category: str                   # flight|hotel|pointOfInterest|itinerary|booking|general
    confidence: float
    extracted_text: str


class TurnStatus(str, Enum):
    AWAITING_CLASSIFICATION = "awaiting_classification"
    GREETED = "greeted"
    DISPATCHED = "dispatched"
    DEFERRED = "deferred"
    HANDLER_SUCCEEDED = "handler_succeeded"
    HANDLER_FAILED = "handler_failed"
    GENERATION_SUCCEEDED = "generation_succeeded"
    GENERATION_FAILED = "generation_failed"


class TurnState(TypedDict, total=False):
    # full ordered context window for the conversation
    history: list[ConversationTurn]
    latest_user_message: str

    # routing
    status: TurnStatus
    intent: Optional[TravelIntent]

    # outputs
    reply: str
    trace: list[dict[str, Any]]
