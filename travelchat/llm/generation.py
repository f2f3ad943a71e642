# travelchat/llm/generation.py
import logging
from typing import Optional, Sequence

from langchain_openai import ChatOpenAI
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from travelchat import config
from travelchat.errors import GenerationError
from travelchat.graph.state import ConversationTurn

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """
You are an intelligent travel assistant with access to real-time flight and hotel data through Amadeus APIs.
Help users search for flights, hotels, and plan their trips.
When users ask about flights or hotels, ask for the details needed to run a search
(departure city, destination, dates, number of travelers).
Be helpful, concise, and accurate. Format responses with markdown for clarity.
"""


def to_langchain_messages(system_prompt: str, history: Sequence[ConversationTurn]) -> list[BaseMessage]:
    out: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for turn in history:
        if turn.role == "assistant":
            out.append(AIMessage(content=turn.content))
        elif turn.role == "system":
            out.append(SystemMessage(content=turn.content))
        else:
            out.append(HumanMessage(content=turn.content))
    return out


class ChatGenerator:
    """
    Open-ended reply generation over the full conversation.

    Without an API key the generator is unconfigured and every call raises
    GenerationError, which the orchestrator turns into a canned reply.
    """

    def __init__(self, llm=None, api_key: Optional[str] = None, model: str = "gpt-4o"):
        if llm is None and api_key:
            llm = ChatOpenAI(
                model=model,
                api_key=api_key,
                temperature=config.OPENAI_TEMPERATURE,
                max_tokens=config.OPENAI_MAX_TOKENS,
            )
        elif llm is None:
            logger.warning("OPENAI_API_KEY is not set, fallback responses will be used instead of real AI")
        self._llm = llm

    @classmethod
    def from_env(cls) -> "ChatGenerator":
        return cls(api_key=config.OPENAI_API_KEY, model=config.OPENAI_MODEL)

    @property
    def configured(self) -> bool:
        return self._llm is not None

    def generate(self, system_prompt: str, history: Sequence[ConversationTurn]) -> str:
        if self._llm is None:
            raise GenerationError("Generation service is not configured")

        try:
            resp = self._llm.invoke(to_langchain_messages(system_prompt, history))
        except Exception as e:
            raise GenerationError(f"Generation failed: {e}") from e

        content = getattr(resp, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise GenerationError("Generation returned an empty reply")
        return content.strip()
