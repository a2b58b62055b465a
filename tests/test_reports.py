import datetime as dt
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from market_daily.models import Holding, NewsArticle, Portfolio
from market_daily.services.reports import ReportComposer, day_bounds


def _article(slug, symbols, category="general", sentiment=0.0, age=None):
    article = NewsArticle.objects.create(
        title=f"Story {slug}",
        url=f"https://example.com/{slug}",
        source="Feed",
        summary=f"Summary {slug}",
        category=category,
        symbols=symbols,
        sentiment=sentiment,
    )
    if age is not None:
        NewsArticle.objects.filter(pk=article.pk).update(created=timezone.now() - age)
    return article


class TestPortfolioReport(TestCase):
    def setUp(self):
        self.composer = ReportComposer()
        self.portfolio = Portfolio.objects.create(name="Tech", description="Big tech")
        Holding.objects.create(portfolio=self.portfolio, symbol="AAPL", name="Apple", sector="Tech")
        Holding.objects.create(portfolio=self.portfolio, symbol="NVDA", name="Nvidia")

    def test_only_related_news_grouped_by_category(self):
        _article("a", ["AAPL"], category="earnings", sentiment=0.5, age=dt.timedelta(hours=3))
        _article("b", ["MSFT"], category="market", sentiment=0.9, age=dt.timedelta(hours=2))
        _article("c", ["NVDA", "AAPL"], category="market", sentiment=-0.1, age=dt.timedelta(hours=1))

        report = self.composer.compose_portfolio_report(self.portfolio.id)

        self.assertFalse(report.is_empty)
        self.assertEqual(report.total_news, 2)
        self.assertEqual([a.title for a in report.portfolio_news], ["Story c", "Story a"])
        self.assertEqual(list(report.news_by_category), ["market", "earnings"])
        self.assertAlmostEqual(report.avg_sentiment, 0.2)
        self.assertEqual(report.portfolio.holding_count, 2)
        self.assertEqual(report.portfolio.holdings[0].sector, "Tech")

    def test_metrics_windows(self):
        _article("week", ["AAPL"], sentiment=0.4, age=dt.timedelta(days=2))
        _article("month", ["AAPL"], sentiment=-0.8, age=dt.timedelta(days=10))
        _article("other", ["TSLA"], sentiment=1.0, age=dt.timedelta(days=1))

        metrics = self.composer.compose_portfolio_report(self.portfolio.id).metrics

        self.assertEqual(metrics.weekly_news_count, 1)
        self.assertEqual(metrics.monthly_news_count, 2)
        self.assertAlmostEqual(metrics.weekly_avg_sentiment, 0.4)

    def test_metric_failure_defaults_to_zero(self):
        _article("a", ["AAPL"], sentiment=0.5)
        with patch.object(ReportComposer, "_related_count", side_effect=RuntimeError("db")):
            report = self.composer.compose_portfolio_report(self.portfolio.id)
        self.assertEqual(report.metrics.weekly_news_count, 0)
        self.assertEqual(report.metrics.monthly_news_count, 0)
        self.assertAlmostEqual(report.metrics.weekly_avg_sentiment, 0.5)
        self.assertEqual(report.total_news, 1)

    def test_target_date_selects_that_day(self):
        day = timezone.localdate() - dt.timedelta(days=3)
        old = _article("old", ["AAPL"], category="earnings")
        NewsArticle.objects.filter(pk=old.pk).update(
            created=day_bounds(day)[0] + dt.timedelta(hours=12)
        )
        _article("today", ["AAPL"])

        report = self.composer.compose_portfolio_report(self.portfolio.id, target_date=day)

        self.assertEqual(report.date, day)
        self.assertEqual([a.title for a in report.portfolio_news], ["Story old"])

    def test_target_date_accepts_strings(self):
        report = self.composer.compose_portfolio_report(self.portfolio.id, "2025-01-02")
        self.assertEqual(report.date, dt.date(2025, 1, 2))
        self.assertEqual(report.total_news, 0)

    def test_empty_portfolio_does_not_query_news(self):
        empty = Portfolio.objects.create(name="Empty")
        with patch("market_daily.services.reports.NewsArticle") as mock_news:
            report = self.composer.compose_portfolio_report(empty.id)
        self.assertTrue(report.is_empty)
        self.assertEqual(report.portfolio.name, "Empty")
        self.assertEqual(mock_news.mock_calls, [])

    def test_missing_portfolio_raises(self):
        with self.assertRaises(Portfolio.DoesNotExist):
            self.composer.compose_portfolio_report(999999)


class TestGeneralReport(TestCase):
    def test_latest_news_and_public_portfolios(self):
        for i in range(12):
            _article(i, [], category="market" if i % 2 else "general", sentiment=0.5,
                     age=dt.timedelta(minutes=60 - i))
        for i in range(6):
            portfolio = Portfolio.objects.create(name=f"Public {i}", is_public=True)
            Holding.objects.create(portfolio=portfolio, symbol="AAPL")
        Portfolio.objects.create(name="Private", is_public=False)

        report = ReportComposer().compose_general_report()

        self.assertTrue(report.is_general)
        self.assertEqual(report.total_news, 10)
        self.assertEqual(report.portfolio_news, [])
        self.assertEqual(list(report.news_by_category), ["market", "general"])
        self.assertAlmostEqual(report.avg_sentiment, 0.5)
        self.assertEqual(len(report.public_portfolios), 5)
        self.assertNotIn("Private", [p.name for p in report.public_portfolios])
        self.assertEqual(report.public_portfolios[0].holding_count, 1)

    def test_empty_store(self):
        report = ReportComposer().compose_general_report()
        self.assertEqual(report.total_news, 0)
        self.assertEqual(report.avg_sentiment, 0.0)
