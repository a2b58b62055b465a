"""
llm.py
Optional AI backend used to summarise articles and score their sentiment.

Talks to any OpenAI compatible endpoint through LangChain's ChatOpenAI.

Settings
--------
OPENAI_API_KEY   : enables the backend; without it ``get_ai_backend()`` is None
OPENAI_MODEL     : optional; defaults to "gpt-3.5-turbo"
OPENAI_BASE_URL  : optional; e.g. "https://api.groq.com/openai/v1"
OPENAI_TIMEOUT   : request timeout in seconds (60)
"""

from __future__ import annotations

import logging

from django.conf import settings
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

SUMMARY_MAX_CHARS = 150

_SUMMARY_SYSTEM = (
    "You are a professional financial news analyst. Summarise the news in "
    "{locale}, highlighting the key facts and the likely market impact."
)
_SENTIMENT_SYSTEM = (
    "Analyse the sentiment of the text. Return a number between -1 and 1, "
    "where -1 is very negative, 0 is neutral and 1 is very positive. "
    "Return only the number."
)


@retry(wait=wait_exponential(multiplier=1, min=4, max=10), stop=stop_after_attempt(5))
def get_llm(
    model: str | None = None,
    temperature: float = 0.0,
    timeout: int | float | None = None,
) -> ChatOpenAI:
    return ChatOpenAI(
        base_url=getattr(settings, "OPENAI_BASE_URL", None),
        api_key=settings.OPENAI_API_KEY,
        model=model or getattr(settings, "OPENAI_MODEL", "gpt-3.5-turbo"),
        temperature=temperature,
        timeout=timeout or getattr(settings, "OPENAI_TIMEOUT", 60),
    )


class AiBackend:
    """Thin wrapper that turns chat completions into plain strings."""

    def __init__(self, llm, locale: str | None = None):
        self.llm = llm
        self.locale = locale or getattr(settings, "SUMMARY_LOCALE", "English")

    def summarize(self, text: str) -> str:
        messages = [
            SystemMessage(content=_SUMMARY_SYSTEM.format(locale=self.locale)),
            HumanMessage(
                content=(
                    f"Summarise the following news in no more than "
                    f"{SUMMARY_MAX_CHARS} characters:\n\n{text}"
                )
            ),
        ]
        resp = self.llm.invoke(messages, max_tokens=200, temperature=0.3)
        return resp.content.strip()

    def score_sentiment(self, text: str) -> str:
        """Returns the raw model reply; the caller parses and clamps it."""
        messages = [SystemMessage(content=_SENTIMENT_SYSTEM), HumanMessage(content=text)]
        resp = self.llm.invoke(messages, max_tokens=10, temperature=0)
        return resp.content.strip()


def get_ai_backend() -> AiBackend | None:
    if not getattr(settings, "OPENAI_API_KEY", ""):
        logger.warning("OPENAI_API_KEY not set, AI summaries and sentiment disabled")
        return None
    return AiBackend(get_llm())
