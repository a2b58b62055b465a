"""
Daily report composition.

Two kinds of report are built from the news store:

* portfolio report - news tagged with one of the portfolio's symbols, plus
  trailing news-count and sentiment metrics;
* general report   - the latest news regardless of portfolio, plus a few
  public portfolios.

Composition only reads.  Errors from the store (or a missing portfolio)
propagate to the caller; only the trailing metrics fall back to zero.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from dateutil import parser as date_parser
from django.db.models import Count
from django.utils import timezone

from market_daily.models import NewsArticle, Portfolio

logger = logging.getLogger(__name__)

PORTFOLIO_RECENT_LIMIT = 20
GENERAL_RECENT_LIMIT = 10
PUBLIC_PORTFOLIO_LIMIT = 5
WEEK_DAYS = 7
MONTH_DAYS = 30


# ------------------------------------------------------------------ #
# Report types
# ------------------------------------------------------------------ #
@dataclass
class ReportArticle:
    title: str
    url: str
    source: str
    summary: str
    category: str
    symbols: List[str]
    sentiment: float
    ingested_at: dt.datetime

    @classmethod
    def from_model(cls, article: NewsArticle) -> "ReportArticle":
        return cls(
            title=article.title,
            url=article.url,
            source=article.source,
            summary=article.summary,
            category=article.category or "general",
            symbols=list(article.symbols or []),
            sentiment=float(article.sentiment or 0),
            ingested_at=article.created,
        )


@dataclass
class HoldingInfo:
    symbol: str
    name: str
    sector: str = ""


@dataclass
class PortfolioInfo:
    id: int
    name: str
    description: str
    holdings: List[HoldingInfo] = field(default_factory=list)
    holding_count: int = 0


@dataclass
class PortfolioMetrics:
    weekly_news_count: int = 0
    monthly_news_count: int = 0
    weekly_avg_sentiment: float = 0.0
    report_date: str = ""


@dataclass
class Report:
    kind: str  # "portfolio" | "general"
    date: dt.date
    total_news: int = 0
    portfolio_news: List[ReportArticle] = field(default_factory=list)
    news_by_category: Dict[str, List[ReportArticle]] = field(default_factory=dict)
    avg_sentiment: float = 0.0
    portfolio: PortfolioInfo | None = None
    metrics: PortfolioMetrics | None = None
    public_portfolios: List[PortfolioInfo] = field(default_factory=list)
    is_empty: bool = False

    @property
    def is_general(self) -> bool:
        return self.kind == "general"


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #
def _coerce_date(target) -> dt.date:
    if isinstance(target, dt.datetime):
        return timezone.localtime(target).date() if timezone.is_aware(target) else target.date()
    if isinstance(target, dt.date):
        return target
    return date_parser.parse(str(target)).date()


def day_bounds(day: dt.date) -> tuple[dt.datetime, dt.datetime]:
    """Start and end (inclusive) of a calendar day in the current timezone."""
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(dt.datetime.combine(day, dt.time.min), tz)
    end = timezone.make_aware(dt.datetime.combine(day, dt.time.max), tz)
    return start, end


def group_by_category(articles: Iterable[ReportArticle]) -> Dict[str, List[ReportArticle]]:
    grouped: Dict[str, List[ReportArticle]] = {}
    for article in articles:
        grouped.setdefault(article.category or "general", []).append(article)
    return grouped


def average_sentiment(articles: Sequence[ReportArticle]) -> float:
    if not articles:
        return 0.0
    return sum(a.sentiment for a in articles) / len(articles)


def _mentions(article: NewsArticle, symbols: set[str]) -> bool:
    return bool(symbols.intersection(article.symbols or []))


# ------------------------------------------------------------------ #
# Composer
# ------------------------------------------------------------------ #
class ReportComposer:
    def compose_portfolio_report(self, portfolio_id: int, target_date=None) -> Report:
        portfolio = Portfolio.objects.get(pk=portfolio_id)
        holdings = [
            HoldingInfo(symbol=h.symbol, name=h.name, sector=h.sector)
            for h in portfolio.holdings.all()
        ]
        report_day = _coerce_date(target_date) if target_date else timezone.localdate()
        info = PortfolioInfo(
            id=portfolio.id,
            name=portfolio.name,
            description=portfolio.description,
            holdings=holdings,
            holding_count=len(holdings),
        )

        if not holdings:
            return Report(kind="portfolio", date=report_day, portfolio=info, is_empty=True)

        symbols = {h.symbol for h in holdings}
        if target_date:
            start, end = day_bounds(report_day)
            candidates = NewsArticle.objects.ingested_between(start, end)
            reference = end
        else:
            candidates = NewsArticle.objects.recent(PORTFOLIO_RECENT_LIMIT)
            reference = timezone.now()

        related = [ReportArticle.from_model(a) for a in candidates if _mentions(a, symbols)]
        return Report(
            kind="portfolio",
            date=report_day,
            total_news=len(related),
            portfolio_news=related,
            news_by_category=group_by_category(related),
            avg_sentiment=average_sentiment(related),
            portfolio=info,
            metrics=self.portfolio_metrics(symbols, reference),
        )

    def portfolio_metrics(self, symbols: set[str], reference: dt.datetime) -> PortfolioMetrics:
        metrics = PortfolioMetrics(report_date=_coerce_date(reference).isoformat())
        week_start = reference - dt.timedelta(days=WEEK_DAYS)
        month_start = reference - dt.timedelta(days=MONTH_DAYS)

        try:
            metrics.weekly_news_count = self._related_count(symbols, week_start, reference)
        except Exception:
            logger.exception("Weekly news count failed")
        try:
            metrics.monthly_news_count = self._related_count(symbols, month_start, reference)
        except Exception:
            logger.exception("Monthly news count failed")
        try:
            metrics.weekly_avg_sentiment = self._related_sentiment(
                symbols, week_start, reference
            )
        except Exception:
            logger.exception("Weekly sentiment failed")
        return metrics

    def _related(self, symbols, start, end) -> List[NewsArticle]:
        rows = NewsArticle.objects.ingested_between(start, end).only("symbols", "sentiment")
        return [a for a in rows if _mentions(a, symbols)]

    def _related_count(self, symbols, start, end) -> int:
        return len(self._related(symbols, start, end))

    def _related_sentiment(self, symbols, start, end) -> float:
        scores = [a.sentiment for a in self._related(symbols, start, end) if a.sentiment is not None]
        return sum(scores) / len(scores) if scores else 0.0

    def compose_general_report(self) -> Report:
        latest = [ReportArticle.from_model(a) for a in NewsArticle.objects.recent(GENERAL_RECENT_LIMIT)]
        public = (
            Portfolio.objects.public()
            .annotate(holding_count=Count("holdings"))
            .order_by("-created", "-id")[:PUBLIC_PORTFOLIO_LIMIT]
        )
        return Report(
            kind="general",
            date=timezone.localdate(),
            total_news=len(latest),
            news_by_category=group_by_category(latest),
            avg_sentiment=average_sentiment(latest),
            public_portfolios=[
                PortfolioInfo(
                    id=p.id,
                    name=p.name,
                    description=p.description,
                    holding_count=p.holding_count,
                )
                for p in public
            ],
        )


def compose_portfolio_report(portfolio_id: int, target_date=None) -> Report:
    return ReportComposer().compose_portfolio_report(portfolio_id, target_date)


def compose_general_report() -> Report:
    return ReportComposer().compose_general_report()
