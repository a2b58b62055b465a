from django.core.management import BaseCommand

from market_daily.services.distribution import send_daily_report


class Command(BaseCommand):
    help = "Send today's digests to every active subscriber."

    def handle(self, *args, **options):
        result = send_daily_report()
        if result is None:
            self.stdout.write(self.style.WARNING("A distribution run is already in progress"))
            return
        self.stdout.write(self.style.SUCCESS(f"{result.sent} sent, {result.failed} failed"))
        if result.failed_groups:
            self.stdout.write(f"Skipped groups: {', '.join(result.failed_groups)}")
