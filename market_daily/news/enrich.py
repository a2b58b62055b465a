"""
Best-effort enrichment of a candidate article before it is stored.

Each step degrades on its own: no content, a truncated summary or a neutral
sentiment are all acceptable outcomes.  Nothing in here raises.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Sequence

import requests
from bs4 import BeautifulSoup

from market_daily.news.relevance import Classifier, default_classifier
from market_daily.news.sources import FEED_HEADERS, RawCandidate
from market_daily.services.llm import AiBackend

logger = logging.getLogger(__name__)

CONTENT_TIMEOUT = 8
CONTENT_MAX_CHARS = 2000
FALLBACK_SUMMARY_CHARS = 200
CONTENT_SELECTORS = [
    "article p",
    ".article-body p",
    ".content p",
    ".story-body p",
    "main p",
]


@dataclass
class Enrichment:
    content: str | None
    summary: str
    category: str
    symbols: List[str] = field(default_factory=list)
    sentiment: float = 0.0


_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_sentiment(raw) -> float:
    """
    Read the leading number of a model reply ("0.7 (positive)" -> 0.7) and
    clamp it into [-1, 1]; a reply without one is neutral.
    """
    match = _LEADING_NUMBER.match(str(raw or ""))
    if not match:
        return 0.0
    value = float(match.group(1))
    if math.isnan(value):
        return 0.0
    return max(-1.0, min(1.0, value))


def truncate_summary(text: str) -> str:
    return (text or "")[:FALLBACK_SUMMARY_CHARS] + "..."


class Enricher:
    def __init__(self, ai: AiBackend | None = None, classifier: Classifier | None = None):
        self.ai = ai
        self.classifier = classifier or default_classifier

    # ------------------------------------------------------------------ #
    def extract_content(self, url: str) -> str | None:
        try:
            resp = requests.get(url, timeout=CONTENT_TIMEOUT, headers=FEED_HEADERS)
            resp.raise_for_status()
            soup = BeautifulSoup(resp.text, "html.parser")
        except Exception as exc:
            logger.debug("Content fetch failed for %s: %s", url, exc)
            return None

        for selector in CONTENT_SELECTORS:
            paragraphs = soup.select(selector)
            if paragraphs:
                text = "\n".join(p.get_text() for p in paragraphs)
                return text[:CONTENT_MAX_CHARS]
        return ""

    def summarize(self, text: str) -> str:
        if self.ai is None:
            return truncate_summary(text)
        try:
            summary = self.ai.summarize(text)
        except Exception as exc:
            logger.warning("AI summary failed, using truncation: %s", exc)
            return truncate_summary(text)
        return summary or truncate_summary(text)

    def score_sentiment(self, text: str) -> float:
        if self.ai is None:
            return 0.0
        try:
            raw = self.ai.score_sentiment(text)
        except Exception as exc:
            logger.warning("AI sentiment failed, defaulting to neutral: %s", exc)
            return 0.0
        return parse_sentiment(raw)

    def categorize(self, title: str, industries: Sequence) -> str:
        return self.classifier.categorize(title, industries)

    def related_symbols(self, text: str, holdings: Sequence) -> List[str]:
        return self.classifier.related_symbols(text, holdings)

    # ------------------------------------------------------------------ #
    def enrich(
        self, candidate: RawCandidate, holdings: Sequence, industries: Sequence
    ) -> Enrichment:
        content = self.extract_content(candidate.url)
        summary = self.summarize(content or candidate.title)
        symbols = self.related_symbols(f"{candidate.title} {content or ''}", holdings)
        sentiment = self.score_sentiment(f"{candidate.title} {summary}")
        category = self.categorize(candidate.title, industries)
        return Enrichment(
            content=content,
            summary=summary,
            category=category,
            symbols=symbols,
            sentiment=sentiment,
        )
