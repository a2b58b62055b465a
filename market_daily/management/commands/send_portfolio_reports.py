from dateutil import parser as date_parser
from django.core.management import BaseCommand, CommandError

from market_daily.services.distribution import ReportDistributor


class Command(BaseCommand):
    help = "Send portfolio reports to the active subscribers of the given portfolios."

    def add_arguments(self, parser):
        parser.add_argument("portfolio_ids", nargs="+", type=int)
        parser.add_argument("--date", help="Report on news ingested on this day (YYYY-MM-DD)")

    def handle(self, *args, **options):
        target_date = None
        if options["date"]:
            try:
                target_date = date_parser.parse(options["date"]).date()
            except (ValueError, OverflowError) as exc:
                raise CommandError(f"Invalid date {options['date']!r}: {exc}")

        results = ReportDistributor().send_portfolio_reports(options["portfolio_ids"], target_date)
        for item in results:
            status = item["status"]
            line = f"portfolio {item['portfolio_id']}: {status}"
            if status == "completed":
                line += f" ({item['sent']}/{item['total']} sent)"
                self.stdout.write(self.style.SUCCESS(line))
            elif status == "skipped":
                self.stdout.write(self.style.WARNING(f"{line} ({item['reason']})"))
            else:
                self.stdout.write(self.style.ERROR(f"{line} ({item['error']})"))
