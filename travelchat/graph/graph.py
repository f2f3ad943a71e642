import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from langgraph.graph import StateGraph, END

from travelchat import config
from travelchat.errors import ExtractionIncomplete, GenerationError
from travelchat.graph.intent import BOOKING, FLIGHT, HOTEL, POINT_OF_INTEREST, classify
from travelchat.graph.state import ConversationTurn, TurnState, TurnStatus
from travelchat.llm.fallback import GREETING, canned_reply
from travelchat.llm.generation import SYSTEM_PROMPT, ChatGenerator
from travelchat.providers.amadeus_provider import AmadeusProvider
from travelchat.providers.base import PriceConfirmation, TravelProvider
from travelchat.providers.locations import LocationResolver

# Agents
from travelchat.agents.booking import run_booking_agent, run_booking_guidance, run_price_check
from travelchat.agents.flights import run_flights_agent
from travelchat.agents.hotels import run_hotels_agent
from travelchat.agents.points_of_interest import run_poi_agent

logger = logging.getLogger(__name__)

Handler = Callable[[str], str]

HANDLED_CATEGORIES = (FLIGHT, HOTEL, POINT_OF_INTEREST, BOOKING)


# ---------------------------
# Utilities
# ---------------------------
def add_trace(state: TurnState, node: str, detail: dict):
    state.setdefault("trace", [])
    state["trace"].append({"node": node, "detail": detail})


def latest_user_message(history: Sequence[ConversationTurn]) -> str:
    for turn in reversed(history):
        if turn.role == "user":
            return turn.content
    return ""


# ---------------------------
# Routing
# ---------------------------
def route_after_classify(state: TurnState) -> str:
    status = state.get("status")
    if status == TurnStatus.GREETED:
        return END
    if status == TurnStatus.DISPATCHED:
        intent = state.get("intent")
        if intent is not None and intent.category in HANDLED_CATEGORIES:
            return "handle"
    # deferred turns and intents without a handler (itinerary, general)
    return "generate"


def route_after_handle(state: TurnState) -> str:
    if state.get("status") == TurnStatus.HANDLER_SUCCEEDED:
        return END
    return "generate"


def route_after_generate(state: TurnState) -> str:
    if state.get("status") == TurnStatus.GENERATION_SUCCEEDED:
        return END
    return "canned"


# ---------------------------
# Orchestrator
# ---------------------------
class ResponseOrchestrator:
    """
    Turns a conversation history into exactly one assistant reply.

    classify -> handle -> generate -> canned, where each step only runs
    when the one before it declined or failed.
    """

    def __init__(
        self,
        provider: TravelProvider,
        resolver: Optional[LocationResolver] = None,
        generator: Optional[ChatGenerator] = None,
        threshold: float = 0.65,
    ):
        self.provider = provider
        self.resolver = resolver or LocationResolver(provider)
        self.generator = generator or ChatGenerator()
        self.threshold = threshold
        self.handlers: Dict[str, Handler] = {
            FLIGHT: lambda text: run_flights_agent(self.provider, self.resolver, text),
            HOTEL: lambda text: run_hotels_agent(self.provider, self.resolver, text),
            POINT_OF_INTEREST: lambda text: run_poi_agent(self.provider, text),
            BOOKING: lambda text: run_booking_guidance(self.provider, text),
        }
        self.graph = self.build_graph()

    @classmethod
    def from_env(cls) -> "ResponseOrchestrator":
        provider = AmadeusProvider.from_env()
        return cls(
            provider,
            resolver=LocationResolver(provider),
            generator=ChatGenerator.from_env(),
            threshold=config.INTENT_CONFIDENCE_THRESHOLD,
        )

    # ---------------------------
    # Nodes
    # ---------------------------
    def node_classify(self, state: TurnState) -> TurnState:
        history = state.get("history") or []

        # the opening turn always gets the introduction
        if len(history) <= 1:
            state["status"] = TurnStatus.GREETED
            state["reply"] = GREETING
            add_trace(state, "classify", {"greeted": True})
            return state

        intent = classify(state.get("latest_user_message") or "")
        state["intent"] = intent

        if intent is not None and intent.confidence > self.threshold:
            state["status"] = TurnStatus.DISPATCHED
        else:
            state["status"] = TurnStatus.DEFERRED

        add_trace(state, "classify", {
            "category": intent.category if intent else None,
            "confidence": intent.confidence if intent else None,
            "status": state["status"].value,
        })
        return state

    def node_handle(self, state: TurnState) -> TurnState:
        intent = state["intent"]
        handler = self.handlers[intent.category]
        text = state.get("latest_user_message") or ""

        try:
            reply = handler(text)
        except ExtractionIncomplete as e:
            state["status"] = TurnStatus.HANDLER_SUCCEEDED
            state["reply"] = e.prompt
            add_trace(state, "handle", {"category": intent.category, "missing": e.missing})
            return state
        except Exception as e:
            logger.error(f"Error handling {intent.category} intent for {text!r}: {e}")
            state["status"] = TurnStatus.HANDLER_FAILED
            add_trace(state, "handle", {"category": intent.category, "error": str(e)})
            return state

        if not reply or not reply.strip():
            logger.warning(f"{intent.category} handler produced an empty reply")
            state["status"] = TurnStatus.HANDLER_FAILED
            add_trace(state, "handle", {"category": intent.category, "error": "empty reply"})
            return state

        state["status"] = TurnStatus.HANDLER_SUCCEEDED
        state["reply"] = reply
        add_trace(state, "handle", {"category": intent.category})
        return state

    def node_generate(self, state: TurnState) -> TurnState:
        try:
            reply = self.generator.generate(SYSTEM_PROMPT, state.get("history") or [])
        except GenerationError as e:
            logger.warning(f"Generation failed, using canned reply: {e}")
            state["status"] = TurnStatus.GENERATION_FAILED
            add_trace(state, "generate", {"error": str(e)})
            return state
        except Exception as e:
            logger.error(f"Unexpected generation error: {e}")
            state["status"] = TurnStatus.GENERATION_FAILED
            add_trace(state, "generate", {"error": str(e)})
            return state

        state["status"] = TurnStatus.GENERATION_SUCCEEDED
        state["reply"] = reply
        add_trace(state, "generate", {})
        return state

    def node_canned(self, state: TurnState) -> TurnState:
        state["reply"] = canned_reply(state.get("latest_user_message"))
        add_trace(state, "canned", {})
        return state

    # ---------------------------
    # Build graph
    # ---------------------------
    def build_graph(self):
        g = StateGraph(TurnState)

        g.add_node("classify", self.node_classify)
        g.add_node("handle", self.node_handle)
        g.add_node("generate", self.node_generate)
        g.add_node("canned", self.node_canned)

        g.set_entry_point("classify")

        g.add_conditional_edges("classify", route_after_classify, {
            "handle": "handle",
            "generate": "generate",
            END: END,
        })
        g.add_conditional_edges("handle", route_after_handle, {
            "generate": "generate",
            END: END,
        })
        g.add_conditional_edges("generate", route_after_generate, {
            "canned": "canned",
            END: END,
        })
        g.add_edge("canned", END)

        return g.compile()

    # ---------------------------
    # Public API
    # ---------------------------
    def run(self, history: Sequence[ConversationTurn]) -> TurnState:
        state: TurnState = {
            "history": list(history),
            "latest_user_message": latest_user_message(history),
            "status": TurnStatus.AWAITING_CLASSIFICATION,
            "intent": None,
            "reply": "",
            "trace": [],
        }
        return self.graph.invoke(state)

    def respond(self, history: Sequence[ConversationTurn]) -> str:
        """Always returns a single non-empty reply."""
        try:
            out = self.run(history)
            reply = out.get("reply")
            if reply and reply.strip():
                return reply
            logger.warning(f"Turn ended in {out.get('status')} without a reply")
        except Exception as e:
            logger.error(f"Error generating AI response: {e}")
        return canned_reply(latest_user_message(history))

    def check_price(self, offer: dict, travelers: Optional[List[dict]] = None) -> PriceConfirmation:
        return run_price_check(self.provider, offer, travelers)

    def book_flight(self, offer: dict, travelers: List[dict], contacts: List[dict]) -> Dict[str, Any]:
        return run_booking_agent(self.provider, offer, travelers, contacts)
