import datetime as dt
import smtplib
from unittest.mock import MagicMock

from django.core.cache import cache
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from market_daily.models import EmailLog, Holding, NewsArticle, Portfolio, Subscription
from market_daily.services.distribution import ReportDistributor, group_subscriptions
from market_daily.services.email_service import SmtpTransport
from market_daily.services.reports import PortfolioInfo, Report, ReportComposer

DAY = dt.date(2025, 10, 6)


def _portfolio_report(portfolio_id, target_date=None):
    return Report(
        kind="portfolio",
        date=DAY,
        portfolio=PortfolioInfo(id=portfolio_id, name=f"P{portfolio_id}", description=""),
        is_empty=True,
    )


def _general_report():
    return Report(kind="general", date=DAY)


def _composer():
    composer = MagicMock(spec=ReportComposer)
    composer.compose_portfolio_report.side_effect = _portfolio_report
    composer.compose_general_report.side_effect = _general_report
    return composer


class DistributionTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.transport = MagicMock(spec=SmtpTransport)
        self.composer = _composer()
        self.distributor = ReportDistributor(transport=self.transport, composer=self.composer)

        self.portfolio = Portfolio.objects.create(name="X")
        Holding.objects.create(portfolio=self.portfolio, symbol="AAPL", name="Apple")
        Subscription.objects.create(email="a@example.com", portfolio=self.portfolio)
        Subscription.objects.create(email="b@example.com", portfolio=self.portfolio)
        Subscription.objects.create(email="c@example.com")

    def sent_to(self):
        return [c.args[0].to for c in self.transport.send.call_args_list]


class TestSendDailyReport(DistributionTestCase):
    def test_one_report_per_group(self):
        result = self.distributor.send_daily_report()

        self.composer.compose_portfolio_report.assert_called_once_with(self.portfolio.id, None)
        self.composer.compose_general_report.assert_called_once_with()
        self.assertEqual(self.sent_to(), ["a@example.com", "b@example.com", "c@example.com"])
        self.assertEqual((result.sent, result.failed), (2 + 1, 0))

        logs = EmailLog.objects.order_by("id")
        self.assertEqual(logs.count(), 3)
        self.assertTrue(all(log.status == EmailLog.STATUS.sent for log in logs))
        self.assertEqual(logs[0].subject, "X Portfolio Daily - 2025-10-06")
        self.assertEqual(logs[2].subject, "Market Daily - 2025-10-06")

    def test_portfolio_email_lists_related_articles(self):
        NewsArticle.objects.create(
            title="Apple beats earnings estimates", url="https://example.com/a1", symbols=["AAPL"]
        )
        NewsArticle.objects.create(
            title="Apple unveils new chip", url="https://example.com/a2", symbols=["AAPL"]
        )
        NewsArticle.objects.create(title="Oil prices slide", url="https://example.com/o1")
        distributor = ReportDistributor(transport=self.transport)

        result = distributor.send_daily_report()

        self.assertEqual((result.sent, result.failed), (3, 0))
        self.assertEqual(EmailLog.objects.filter(status=EmailLog.STATUS.sent).count(), 3)
        email = self.transport.send.call_args_list[0].args[0]
        self.assertEqual(email.to, "a@example.com")
        self.assertEqual(email.subject, f"X Portfolio Daily - {timezone.localdate():%Y-%m-%d}")
        self.assertIn("Apple beats earnings estimates", email.html)
        self.assertIn("Apple unveils new chip", email.html)

    def test_failed_recipient_does_not_stop_others(self):
        def send(email):
            if email.to == "b@example.com":
                raise smtplib.SMTPRecipientsRefused({email.to: (550, b"no such user")})
            return {}

        self.transport.send.side_effect = send
        result = self.distributor.send_daily_report()

        self.assertEqual((result.sent, result.failed), (2, 1))
        failed = EmailLog.objects.get(recipient="b@example.com")
        self.assertEqual(failed.status, EmailLog.STATUS.failed)
        self.assertIn("no such user", failed.error_message)
        self.assertEqual(
            EmailLog.objects.filter(status=EmailLog.STATUS.sent).count(), 2
        )

    def test_composition_failure_skips_only_that_group(self):
        self.composer.compose_portfolio_report.side_effect = DatabaseError("boom")
        result = self.distributor.send_daily_report()

        self.assertEqual(result.failed_groups, [f"portfolio {self.portfolio.id}"])
        self.assertEqual(self.sent_to(), ["c@example.com"])
        self.assertEqual(EmailLog.objects.count(), 1)

    def test_groups_follow_portfolio_id_and_skip_inactive(self):
        other = Portfolio.objects.create(name="Y")
        Subscription.objects.create(email="d@example.com", portfolio=other)
        Subscription.objects.create(email="e@example.com", portfolio=other, is_active=False)
        # created last but belongs to the lower portfolio id
        Subscription.objects.create(email="f@example.com", portfolio=self.portfolio)

        self.distributor.send_daily_report()

        self.assertEqual(
            self.sent_to(),
            ["a@example.com", "b@example.com", "f@example.com", "d@example.com", "c@example.com"],
        )

    def test_no_subscriptions(self):
        Subscription.objects.all().delete()
        result = self.distributor.send_daily_report()
        self.assertEqual(result.total, 0)
        self.composer.compose_general_report.assert_not_called()

    def test_concurrent_run_is_a_noop(self):
        cache.add("market_daily:lock:send_daily_report", "1", 60)
        self.assertIsNone(self.distributor.send_daily_report())
        self.transport.send.assert_not_called()
        self.assertFalse(EmailLog.objects.exists())


class TestOperatorActions(DistributionTestCase):
    def test_send_portfolio_reports(self):
        lonely = Portfolio.objects.create(name="Lonely")
        results = self.distributor.send_portfolio_reports(
            [self.portfolio.id, lonely.id, 999999], target_date=DAY
        )

        self.assertEqual([r["status"] for r in results], ["completed", "skipped", "failed"])
        self.assertEqual(results[0]["sent"], 2)
        self.assertEqual(results[0]["total"], 2)
        self.composer.compose_portfolio_report.assert_called_once_with(self.portfolio.id, DAY)

    def test_regenerate_report(self):
        outcome = self.distributor.regenerate_report(
            self.portfolio.id, ["z@example.com"], target_date=DAY
        )
        self.assertEqual(outcome["sent"], 1)
        self.assertEqual(outcome["date"], "2025-10-06")
        self.assertEqual(self.sent_to(), ["z@example.com"])

    def test_send_test_email(self):
        ok, message = self.distributor.send_test_email("t@example.com")
        self.assertTrue(ok)
        self.assertIn("t@example.com", message)

        self.transport.send.side_effect = OSError("connection refused")
        ok, message = self.distributor.send_test_email("t@example.com")
        self.assertFalse(ok)
        self.assertEqual(
            EmailLog.objects.filter(status=EmailLog.STATUS.failed).count(), 1
        )


class TestGroupSubscriptions(TestCase):
    def test_general_group_last(self):
        first = Portfolio.objects.create(name="1")
        second = Portfolio.objects.create(name="2")
        subs = [
            Subscription(email="g@example.com"),
            Subscription(email="s@example.com", portfolio=second),
            Subscription(email="f@example.com", portfolio=first),
        ]
        groups = group_subscriptions(subs)
        self.assertEqual(list(groups), [first.id, second.id, None])
        self.assertEqual(groups[None], ["g@example.com"])
