import datetime as dt
from unittest.mock import MagicMock

from django.test import TestCase
from django.utils import timezone

from market_daily.models import NewsArticle
from market_daily.news.enrich import Enrichment
from market_daily.news.ingest import ArticleStore
from market_daily.news.sources import RawCandidate


def _enrichment(**kwargs):
    values = dict(
        content="body",
        summary="summary",
        category="market",
        symbols=["AAPL"],
        sentiment=0.3,
    )
    values.update(kwargs)
    return Enrichment(**values)


class TestArticleStore(TestCase):
    def setUp(self):
        self.store = ArticleStore()
        self.candidate = RawCandidate(
            title="Apple shares climb", url="https://example.com/apple", source="Feed"
        )

    def test_save_inserts_enriched_article(self):
        enrich = MagicMock(return_value=_enrichment())
        self.assertTrue(self.store.save(self.candidate, enrich))

        article = NewsArticle.objects.get(url=self.candidate.url)
        self.assertEqual(article.title, "Apple shares climb")
        self.assertEqual(article.symbols, ["AAPL"])
        self.assertEqual(article.category, "market")
        self.assertAlmostEqual(article.sentiment, 0.3)
        enrich.assert_called_once_with(self.candidate)

    def test_known_url_is_skipped_before_enrichment(self):
        self.store.save(self.candidate, MagicMock(return_value=_enrichment()))
        article = NewsArticle.objects.get(url=self.candidate.url)

        enrich = MagicMock(return_value=_enrichment(summary="different"))
        self.assertFalse(self.store.save(self.candidate, enrich))
        enrich.assert_not_called()

        self.assertEqual(NewsArticle.objects.count(), 1)
        article.refresh_from_db()
        self.assertEqual(article.summary, "summary")

    def test_enrichment_error_is_swallowed(self):
        enrich = MagicMock(side_effect=RuntimeError("boom"))
        self.assertFalse(self.store.save(self.candidate, enrich))
        self.assertFalse(NewsArticle.objects.exists())

    def test_purge_respects_retention(self):
        old = NewsArticle.objects.create(title="old", url="https://example.com/old")
        recent = NewsArticle.objects.create(title="recent", url="https://example.com/recent")
        now = timezone.now()
        NewsArticle.objects.filter(pk=old.pk).update(created=now - dt.timedelta(days=8))
        NewsArticle.objects.filter(pk=recent.pk).update(created=now - dt.timedelta(days=6))

        self.assertEqual(self.store.purge_older_than(7), 1)
        self.assertEqual(list(NewsArticle.objects.values_list("title", flat=True)), ["recent"])
