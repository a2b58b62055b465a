"""
Headline relevance, categorisation and symbol tagging.

Everything here is plain case-insensitive substring matching.  Callers talk
to the ``Classifier`` interface only, so a tokenising or model based
implementation can replace ``KeywordClassifier`` without touching them.
"""

from __future__ import annotations

import abc
from typing import Dict, List, Sequence

FINANCIAL_TERMS = [
    "stock",
    "market",
    "earnings",
    "revenue",
    "profit",
    "loss",
    "shares",
    "dividend",
    "investment",
    "trading",
    "nasdaq",
    "dow",
    "s&p",
    "fed",
    "interest rate",
    "inflation",
    "gdp",
]

# looser list used when there are no holdings or industries at all
GENERAL_FINANCIAL_TERMS = FINANCIAL_TERMS + [
    "economy",
    "wall street",
    "finance",
    "financial",
    "company",
    "business",
    "ceo",
    "ipo",
    "merger",
    "acquisition",
    "quarter",
    "fiscal",
]

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "earnings": ["earnings", "revenue", "profit", "loss"],
    "market": ["market", "trading", "index", "dow", "nasdaq", "s&p"],
    "policy": ["fed", "interest rate", "policy", "regulation"],
    "economy": ["gdp", "inflation", "employment", "economic"],
}
DEFAULT_CATEGORY = "general"


def _contains(haystack: str, needle: str | None) -> bool:
    needle = (needle or "").strip().lower()
    return bool(needle) and needle in haystack


def _industry_keywords(industry) -> List[str]:
    keywords = getattr(industry, "keywords", "") or ""
    if isinstance(keywords, str):
        return [kw.strip() for kw in keywords.split(",")]
    return list(keywords)


class Classifier(abc.ABC):
    @abc.abstractmethod
    def is_relevant(self, title: str, holdings: Sequence, industries: Sequence) -> bool:
        ...

    @abc.abstractmethod
    def categorize(self, title: str, industries: Sequence) -> str:
        ...

    @abc.abstractmethod
    def related_symbols(self, text: str, holdings: Sequence) -> List[str]:
        ...


class KeywordClassifier(Classifier):
    def __init__(
        self,
        financial_terms: Sequence[str] = FINANCIAL_TERMS,
        general_terms: Sequence[str] = GENERAL_FINANCIAL_TERMS,
        categories: Dict[str, List[str]] | None = None,
    ):
        self.financial_terms = list(financial_terms)
        self.general_terms = list(general_terms)
        self.categories = categories or CATEGORY_KEYWORDS

    def is_financial_news(self, title: str) -> bool:
        title_lower = (title or "").lower()
        return any(term in title_lower for term in self.general_terms)

    def is_relevant(self, title: str, holdings: Sequence, industries: Sequence) -> bool:
        if not holdings and not industries:
            return self.is_financial_news(title)

        title_lower = (title or "").lower()
        for holding in holdings:
            if _contains(title_lower, holding.symbol) or _contains(
                title_lower, getattr(holding, "name", "")
            ):
                return True

        for industry in industries:
            if any(_contains(title_lower, kw) for kw in _industry_keywords(industry)):
                return True
            if _contains(title_lower, industry.name):
                return True

        return any(term in title_lower for term in self.financial_terms)

    def categorize(self, title: str, industries: Sequence) -> str:
        title_lower = (title or "").lower()
        for industry in industries:
            if _contains(title_lower, industry.name):
                return industry.name

        for category, keywords in self.categories.items():
            if any(kw in title_lower for kw in keywords):
                return category
        return DEFAULT_CATEGORY

    def related_symbols(self, text: str, holdings: Sequence) -> List[str]:
        text_lower = (text or "").lower()
        symbols: List[str] = []
        for holding in holdings:
            if holding.symbol in symbols:
                continue
            if _contains(text_lower, holding.symbol) or _contains(
                text_lower, getattr(holding, "name", "")
            ):
                symbols.append(holding.symbol)
        return symbols


default_classifier = KeywordClassifier()


def is_relevant(title: str, holdings: Sequence, industries: Sequence) -> bool:
    return default_classifier.is_relevant(title, holdings, industries)
