import datetime as dt
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from market_daily.models import EmailLog


class TestEmailLog(TestCase):
    def test_rows_are_append_only(self):
        log = EmailLog.objects.record("a@example.com", "Subject", EmailLog.STATUS.sent)
        log.status = EmailLog.STATUS.failed
        with self.assertRaises(ValueError):
            log.save()
        log.refresh_from_db()
        self.assertEqual(log.status, EmailLog.STATUS.sent)

    def test_long_subject_is_truncated(self):
        log = EmailLog.objects.record("a@example.com", "x" * 400, EmailLog.STATUS.sent)
        self.assertEqual(len(log.subject), 255)

    def test_stats(self):
        EmailLog.objects.record("a@example.com", "S", EmailLog.STATUS.sent)
        EmailLog.objects.record("b@example.com", "S", EmailLog.STATUS.failed, "timed out")
        EmailLog.objects.record("c@example.com", "S", EmailLog.STATUS.failed, "timed out")
        EmailLog.objects.record("d@example.com", "S", EmailLog.STATUS.failed, "refused")

        stats = EmailLog.objects.stats()

        self.assertEqual(stats["total"], {"total": 4, "sent": 1, "failed": 3, "pending": 0})
        self.assertEqual(len(stats["recent"]), 1)
        self.assertEqual(stats["recent"][0]["total"], 4)
        self.assertEqual(stats["errors"][0], {"error_message": "timed out", "count": 2})


class TestEmailLogCommands(TestCase):
    def test_cleanup_email_logs(self):
        old = EmailLog.objects.record("a@example.com", "S", EmailLog.STATUS.sent)
        EmailLog.objects.record("b@example.com", "S", EmailLog.STATUS.sent)
        EmailLog.objects.filter(pk=old.pk).update(sent_at=timezone.now() - dt.timedelta(days=40))

        out = StringIO()
        call_command("cleanup_email_logs", days=30, stdout=out)

        self.assertIn("Deleted 1", out.getvalue())
        self.assertEqual(list(EmailLog.objects.values_list("recipient", flat=True)), ["b@example.com"])

    def test_email_stats(self):
        EmailLog.objects.record("b@example.com", "S", EmailLog.STATUS.failed, "refused")
        out = StringIO()
        call_command("email_stats", stdout=out)
        self.assertIn("total=1 sent=0 failed=1", out.getvalue())
        self.assertIn("refused", out.getvalue())
