import datetime as dt

from django.core.management import BaseCommand
from django.utils import timezone

from market_daily.models import EmailLog


class Command(BaseCommand):
    help = "Delete email log entries older than --days days."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=90)

    def handle(self, *args, **options):
        cutoff = timezone.now() - dt.timedelta(days=options["days"])
        deleted, _ = EmailLog.objects.filter(sent_at__lt=cutoff).delete()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} email log entries"))
