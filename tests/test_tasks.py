from io import StringIO
from unittest.mock import MagicMock, patch

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase

from market_daily.news.orchestrator import IngestResult
from market_daily.services.distribution import DistributionResult
from market_daily.tasks import (
    _crontab_from_expr,
    send_daily_report_task,
    setup_periodic_tasks,
    update_news_task,
)


class TestSchedule(SimpleTestCase):
    def test_cron_expression(self):
        schedule = _crontab_from_expr("30 7 * * 1-5")
        self.assertEqual(schedule.minute, {30})
        self.assertEqual(schedule.hour, {7})
        self.assertEqual(schedule.day_of_week, {1, 2, 3, 4, 5})

    def test_invalid_expression_falls_back(self):
        schedule = _crontab_from_expr("every morning")
        self.assertEqual(schedule.hour, {8})

    def test_periodic_tasks_registered(self):
        sender = MagicMock()
        setup_periodic_tasks(sender)
        names = [c.kwargs["name"] for c in sender.add_periodic_task.call_args_list]
        self.assertEqual(names, ["Update financial news", "Send daily report"])


class TestTasks(SimpleTestCase):
    @patch("market_daily.tasks.update_news", return_value=None)
    def test_update_news_already_running(self, mock_update):
        self.assertEqual(update_news_task(), "News update already running")

    @patch("market_daily.tasks.update_news")
    def test_update_news(self, mock_update):
        mock_update.return_value = IngestResult(successes=3, saved=5, purged=1)
        self.assertIn("5 saved", update_news_task())

    @patch("market_daily.tasks.send_daily_report")
    def test_send_daily_report(self, mock_send):
        mock_send.return_value = DistributionResult(sent=4, failed=1)
        self.assertEqual(send_daily_report_task(), "Daily report: 4 sent, 1 failed")


class TestCommands(TestCase):
    @patch("market_daily.management.commands.update_news.update_news")
    def test_update_news(self, mock_update):
        mock_update.return_value = IngestResult(
            successes=2, saved=1, tiers_run=["rss"], errors={"WSJ Markets": "blocked"}
        )
        out = StringIO()
        call_command("update_news", stdout=out)
        self.assertIn("1 new articles", out.getvalue())
        self.assertIn("WSJ Markets: blocked", out.getvalue())

    @patch("market_daily.management.commands.send_daily_report.send_daily_report", return_value=None)
    def test_send_daily_report_locked(self, mock_send):
        out = StringIO()
        call_command("send_daily_report", stdout=out)
        self.assertIn("already in progress", out.getvalue())

    def test_send_portfolio_reports_unknown_portfolio(self):
        out = StringIO()
        call_command("send_portfolio_reports", "424242", "--date", "2025-10-06", stdout=out)
        self.assertIn("portfolio 424242: failed", out.getvalue())
