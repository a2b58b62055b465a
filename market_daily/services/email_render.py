"""
Turns a composed report into the subject, HTML and plain-text bodies of a
digest email.  Rendering is pure; templates live under
``templates/market_daily/email``.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List, Tuple

from django.template.loader import render_to_string

from market_daily.services.reports import Report, ReportArticle

OPTIMISTIC_THRESHOLD = 0.1
CAUTIOUS_THRESHOLD = -0.1
TOP_RELATED = 5
TOP_PER_CATEGORY = 3

CATEGORY_LABELS = {
    "earnings": "📊 Earnings",
    "market": "📈 Markets",
    "policy": "🏛️ Policy & Regulation",
    "economy": "🌍 Economy",
    "technology": "💻 Technology",
    "finance": "💰 Finance",
    "general": "📰 General",
}


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


@dataclass
class SentimentBadge:
    score: float
    label: str
    emoji: str
    color: str


def sentiment_label(score: float) -> str:
    if score > OPTIMISTIC_THRESHOLD:
        return "optimistic"
    if score < CAUTIOUS_THRESHOLD:
        return "cautious"
    return "neutral"


_BADGES = {
    "optimistic": ("📈", "#52c41a"),
    "cautious": ("📉", "#ff4d4f"),
    "neutral": ("➡️", "#faad14"),
}


def sentiment_badge(score: float) -> SentimentBadge:
    label = sentiment_label(score)
    emoji, color = _BADGES[label]
    return SentimentBadge(score=score, label=label, emoji=emoji, color=color)


def format_date(day: dt.date) -> str:
    return day.strftime("%Y-%m-%d")


def general_subject(day: dt.date) -> str:
    return f"Market Daily - {format_date(day)}"


def portfolio_subject(name: str, day: dt.date) -> str:
    return f"{name} Portfolio Daily - {format_date(day)}"


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, f"📰 {category.upper()}")


def category_sections(
    report: Report, skip_general: bool = False
) -> List[Tuple[str, str, List[ReportArticle]]]:
    """(category, label, top articles) in first-seen order."""
    sections = []
    for category, articles in report.news_by_category.items():
        if not articles or (skip_general and category == "general"):
            continue
        sections.append((category, category_label(category), articles[:TOP_PER_CATEGORY]))
    return sections


def _context(report: Report) -> dict:
    return {
        "report": report,
        "date": format_date(report.date),
        "sentiment": sentiment_badge(report.avg_sentiment),
        "categories": category_sections(report),
    }


def render_portfolio_report(report: Report) -> RenderedEmail:
    ctx = _context(report)
    ctx.update(
        portfolio=report.portfolio,
        metrics=report.metrics,
        top_news=report.portfolio_news[:TOP_RELATED],
        html_categories=category_sections(report, skip_general=True),
    )
    return RenderedEmail(
        subject=portfolio_subject(report.portfolio.name, report.date),
        html=render_to_string("market_daily/email/portfolio_report.html", ctx),
        text=render_to_string("market_daily/email/portfolio_report.txt", ctx),
    )


def render_general_report(report: Report) -> RenderedEmail:
    ctx = _context(report)
    ctx["public_portfolios"] = report.public_portfolios
    return RenderedEmail(
        subject=general_subject(report.date),
        html=render_to_string("market_daily/email/general_report.html", ctx),
        text=render_to_string("market_daily/email/general_report.txt", ctx),
    )


def render_report(report: Report) -> RenderedEmail:
    if report.is_general:
        return render_general_report(report)
    return render_portfolio_report(report)
