import datetime as dt

from django.db import models
from django.db.models import Count, Q
from django.db.models.functions import TruncDate
from django.utils import timezone
from model_utils import Choices


class EmailLogQuerySet(models.QuerySet):
    def record(self, recipient: str, subject: str, status: str, error_message=None):
        return self.create(
            recipient=recipient,
            subject=subject[:255],
            status=status,
            error_message=error_message,
        )

    def stats(self, days: int = 30, top_errors: int = 10) -> dict:
        """Totals, per-day counts for the last ``days`` and the commonest errors."""
        totals = self.aggregate(
            total=Count("id"),
            sent=Count("id", filter=Q(status=EmailLog.STATUS.sent)),
            failed=Count("id", filter=Q(status=EmailLog.STATUS.failed)),
            pending=Count("id", filter=Q(status=EmailLog.STATUS.pending)),
        )
        since = timezone.now() - dt.timedelta(days=days)
        daily = (
            self.filter(sent_at__gt=since)
            .annotate(date=TruncDate("sent_at"))
            .values("date")
            .annotate(
                total=Count("id"),
                sent=Count("id", filter=Q(status=EmailLog.STATUS.sent)),
                failed=Count("id", filter=Q(status=EmailLog.STATUS.failed)),
            )
            .order_by("-date")
        )
        errors = (
            self.filter(status=EmailLog.STATUS.failed, error_message__isnull=False)
            .values("error_message")
            .annotate(count=Count("id"))
            .order_by("-count")[:top_errors]
        )
        return {"total": totals, "recent": list(daily), "errors": list(errors)}


class EmailLog(models.Model):
    """Audit trail of every send attempt.  Rows are never modified."""

    STATUS = Choices("sent", "failed", "pending")

    recipient = models.EmailField()
    subject = models.CharField(max_length=255)
    status = models.CharField(choices=STATUS, default=STATUS.pending, max_length=7)
    error_message = models.TextField(null=True, blank=True)
    sent_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = EmailLogQuerySet.as_manager()

    class Meta:
        ordering = ("-sent_at",)

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError("EmailLog entries are append-only")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.status} {self.recipient}: {self.subject}"
