"""
Travel assistant backed by a LangChain chat model
"""

import logging
import time

from langchain_core.messages import SystemMessage
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from tourguide.core.config import OPENAI_API_KEY, OPENAI_MODEL
from tourguide.core.errors import AssistantUnavailableError

logger = logging.getLogger(__name__)

AGENT_LABEL = "assistant"

SYSTEM = (
    "You are a knowledgeable Maharashtra tour guide assistant. Help tourists with "
    "information about places, culture, travel tips, and local experiences in Maharashtra."
)


class TravelAssistant:
    def __init__(self) -> None:
        self.llm = None
        self._llm_unavailable_reason: str = ""
        if OPENAI_API_KEY:
            try:
                self.llm = ChatOpenAI(model=OPENAI_MODEL, temperature=0.7, api_key=OPENAI_API_KEY)
            except Exception as e:
                self._llm_unavailable_reason = f"Failed to initialize OpenAI client: {e}"
        else:
            self._llm_unavailable_reason = "No API key found in OPENAI_API_KEY"
        self.prompt = ChatPromptTemplate.from_messages(
            [SystemMessage(content=SYSTEM), ("user", "{message}")]
        )

    @property
    def available(self) -> bool:
        return self.llm is not None

    async def reply(self, message: str) -> str:
        if self.llm is None:
            logger.warning(f"[{AGENT_LABEL}] LLM unavailable: {self._llm_unavailable_reason}")
            raise AssistantUnavailableError("Travel assistant is not configured")

        t0 = time.time()
        try:
            response = await (self.prompt | self.llm).ainvoke({"message": message})
        except Exception as e:
            logger.error(f"[{AGENT_LABEL}] {type(e).__name__}: {e}")
            raise AssistantUnavailableError("Failed to get response from assistant") from e

        logger.info(f"[{AGENT_LABEL}] Replied in {(time.time() - t0) * 1000:.2f}ms")
        return response.content if hasattr(response, "content") else str(response)


_assistant: TravelAssistant | None = None


def get_assistant() -> TravelAssistant:
    """FastAPI dependency; a single assistant per process."""
    global _assistant
    if _assistant is None:
        _assistant = TravelAssistant()
    return _assistant
