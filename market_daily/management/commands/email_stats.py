from django.core.management import BaseCommand

from market_daily.models import EmailLog


class Command(BaseCommand):
    help = "Print email delivery statistics."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=30)

    def handle(self, *args, **options):
        stats = EmailLog.objects.stats(days=options["days"])
        total = stats["total"]
        self.stdout.write(
            f"total={total['total']} sent={total['sent']} "
            f"failed={total['failed']} pending={total['pending']}"
        )
        for row in stats["recent"]:
            self.stdout.write(f"{row['date']}: {row['sent']} sent, {row['failed']} failed")
        if stats["errors"]:
            self.stdout.write("Most common errors:")
            for row in stats["errors"]:
                self.stdout.write(f"  {row['count']} x {row['error_message']}")
