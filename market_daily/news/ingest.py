"""
Write path of the news store.

The URL is the dedup key: a known URL is skipped before any enrichment work
is done, and rows are never updated afterwards.  A failure to store one
article is logged and swallowed so the surrounding run carries on.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from market_daily.models import NewsArticle
from market_daily.news.enrich import Enrichment
from market_daily.news.sources import RawCandidate

logger = logging.getLogger(__name__)

RETENTION_DAYS = getattr(settings, "NEWS_RETENTION_DAYS", 7)


class ArticleStore:
    def exists(self, url: str) -> bool:
        return NewsArticle.objects.url_exists(url)

    def save(
        self, candidate: RawCandidate, enrich: Callable[[RawCandidate], Enrichment]
    ) -> bool:
        """
        Store ``candidate`` unless its URL is already known.
        Returns True when a new row was inserted.
        """
        try:
            if self.exists(candidate.url):
                return False

            enrichment = enrich(candidate)
            with transaction.atomic():
                NewsArticle.objects.create(
                    title=candidate.title,
                    url=candidate.url,
                    source=candidate.source or "",
                    content=enrichment.content,
                    summary=enrichment.summary,
                    category=enrichment.category,
                    symbols=enrichment.symbols,
                    sentiment=enrichment.sentiment,
                    published_at=candidate.published_at,
                )
            return True

        except IntegrityError:
            # another writer stored the same URL in between
            logger.info("Duplicate article skipped: %s", candidate.url)
            return False
        except Exception:
            logger.exception("Error saving news article %s", candidate.url)
            return False

    def purge_older_than(self, days: int = RETENTION_DAYS) -> int:
        cutoff = timezone.now() - dt.timedelta(days=days)
        deleted, _ = NewsArticle.objects.older_than(cutoff).delete()
        logger.info("Removed %d articles ingested before %s", deleted, cutoff)
        return deleted
