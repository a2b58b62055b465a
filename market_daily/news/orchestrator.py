"""
Hourly news update.

    IDLE -> RUNNING -> TIER_RSS -> TIER_API -> TIER_SCRAPE -> CLEANUP -> IDLE

Tiers are small strategy objects run in order.  RSS always runs, the API tier
runs whenever a key is configured, and scraping only runs while nothing has
succeeded yet.  Source failures are logged per source and never escape a run;
a run in which every source failed only logs a warning.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from django.conf import settings

from market_daily.exceptions import SourceFetchError
from market_daily.models import Holding, Industry
from market_daily.news import sources as news_sources
from market_daily.news.enrich import Enricher
from market_daily.news.ingest import RETENTION_DAYS, ArticleStore
from market_daily.news.relevance import Classifier, default_classifier
from market_daily.news.sources import RawCandidate, Source, Universe
from market_daily.services.llm import get_ai_backend
from market_daily.utils.locks import single_flight

logger = logging.getLogger(__name__)


class IngestState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    TIER_RSS = "tier_rss"
    TIER_API = "tier_api"
    TIER_SCRAPE = "tier_scrape"
    CLEANUP = "cleanup"


@dataclass
class IngestResult:
    successes: int = 0
    saved: int = 0
    purged: int = 0
    tiers_run: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)


@dataclass
class IngestContext:
    universe: Universe
    classifier: Classifier
    enricher: Enricher
    store: ArticleStore
    result: IngestResult
    api_key: str = ""


# --------------------------------------------------------------------------- #
#  Tiers
# --------------------------------------------------------------------------- #
class Tier:
    name = "tier"
    state = IngestState.RUNNING
    kind = "rss"
    save_cap: int | None = None

    def __init__(self, sources: Sequence[Source]):
        self.sources = list(sources)

    def should_run(self, ctx: IngestContext) -> bool:
        return True

    def fetch(self, source: Source, ctx: IngestContext) -> List[RawCandidate]:
        return news_sources.fetch(source, ctx.universe)

    def run(self, ctx: IngestContext) -> int:
        """Process every source of the tier, returning how many succeeded."""
        successes = 0
        for source in self.sources:
            try:
                candidates = self.fetch(source, ctx)
            except SourceFetchError as exc:
                logger.warning(
                    "%s fetch failed (%s, retry next run: %s): %s",
                    source.name,
                    exc.kind,
                    exc.retryable,
                    exc,
                )
                ctx.result.errors[source.name] = exc.kind
                continue

            successes += 1
            saved = self.persist(candidates, ctx)
            logger.info(
                "%s: %d candidates, %d new articles saved",
                source.name,
                len(candidates),
                saved,
            )
        return successes

    def persist(self, candidates: Sequence[RawCandidate], ctx: IngestContext) -> int:
        holdings = ctx.universe.holdings
        industries = ctx.universe.industries
        relevant = [
            c for c in candidates if ctx.classifier.is_relevant(c.title, holdings, industries)
        ]
        if self.save_cap is not None:
            relevant = relevant[: self.save_cap]

        saved = 0
        for candidate in relevant:
            if ctx.store.save(
                candidate, lambda c: ctx.enricher.enrich(c, holdings, industries)
            ):
                saved += 1
        ctx.result.saved += saved
        return saved


class RssTier(Tier):
    name = "rss"
    state = IngestState.TIER_RSS
    save_cap = 10


class ApiTier(Tier):
    """Supplements RSS whenever a key is configured, whatever RSS achieved."""

    name = "api"
    state = IngestState.TIER_API

    def should_run(self, ctx: IngestContext) -> bool:
        return bool(ctx.api_key)

    def fetch(self, source: Source, ctx: IngestContext) -> List[RawCandidate]:
        return news_sources.fetch(source, ctx.universe, api_key=ctx.api_key)


class ScrapeTier(Tier):
    """Layout dependent and anti-bot prone, so only used when all else failed."""

    name = "scrape"
    state = IngestState.TIER_SCRAPE
    save_cap = 5

    def should_run(self, ctx: IngestContext) -> bool:
        return ctx.result.successes == 0


def default_tiers(all_sources: Sequence[Source] = news_sources.SOURCES) -> List[Tier]:
    return [
        RssTier(news_sources.sources_of_kind("rss", all_sources)),
        ApiTier(news_sources.sources_of_kind("api", all_sources)),
        ScrapeTier(news_sources.sources_of_kind("scrape", all_sources)),
    ]


# --------------------------------------------------------------------------- #
#  Updater
# --------------------------------------------------------------------------- #
def load_universe() -> Universe:
    """All holdings across portfolios (one per symbol) and watched industries."""
    seen, holdings = set(), []
    for holding in Holding.objects.order_by("id"):
        if holding.symbol in seen:
            continue
        seen.add(holding.symbol)
        holdings.append(holding)
    return Universe(holdings=holdings, industries=list(Industry.objects.all()))


class NewsUpdater:
    LOCK_NAME = "update_news"

    def __init__(
        self,
        tiers: Sequence[Tier] | None = None,
        enricher: Enricher | None = None,
        store: ArticleStore | None = None,
        classifier: Classifier | None = None,
        api_key: str | None = None,
        retention_days: int = RETENTION_DAYS,
    ):
        self.tiers = list(tiers) if tiers is not None else default_tiers()
        self.classifier = classifier or default_classifier
        self.enricher = enricher or Enricher(get_ai_backend(), self.classifier)
        self.store = store or ArticleStore()
        self.api_key = api_key if api_key is not None else getattr(settings, "NEWSAPI_KEY", "")
        self.retention_days = retention_days
        self.state = IngestState.IDLE

    def _enter(self, state: IngestState):
        logger.debug("news update: %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self) -> IngestResult | None:
        """
        One full update.  Returns None without doing anything when another
        update currently holds the lock.
        """
        timeout = getattr(settings, "NEWS_LOCK_TIMEOUT", 60 * 55)
        with single_flight(self.LOCK_NAME, timeout) as acquired:
            if not acquired:
                return None
            try:
                return self._run()
            finally:
                self._enter(IngestState.IDLE)

    def _run(self) -> IngestResult:
        self._enter(IngestState.RUNNING)
        result = IngestResult()
        ctx = IngestContext(
            universe=load_universe(),
            classifier=self.classifier,
            enricher=self.enricher,
            store=self.store,
            result=result,
            api_key=self.api_key,
        )
        logger.info(
            "News update: %d holdings, %d industries",
            len(ctx.universe.holdings),
            len(ctx.universe.industries),
        )

        for tier in self.tiers:
            if not tier.should_run(ctx):
                logger.info("Skipping %s tier", tier.name)
                continue
            self._enter(tier.state)
            result.successes += tier.run(ctx)
            result.tiers_run.append(tier.name)

        if result.successes == 0:
            logger.warning(
                "Every news source failed; check network access and API configuration"
            )
        else:
            logger.info(
                "Fetched news from %d sources, %d new articles",
                result.successes,
                result.saved,
            )

        self._enter(IngestState.CLEANUP)
        try:
            result.purged = self.store.purge_older_than(self.retention_days)
        except Exception:
            logger.exception("Error cleaning old news")
        return result


def update_news() -> IngestResult | None:
    return NewsUpdater().run()
