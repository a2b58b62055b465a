from django.core.management import BaseCommand, CommandError

from market_daily.services.distribution import ReportDistributor


class Command(BaseCommand):
    help = "Send the general digest to one address to check the mail setup."

    def add_arguments(self, parser):
        parser.add_argument("recipient")
        parser.add_argument(
            "--verify-only",
            action="store_true",
            help="Only connect and authenticate against the SMTP server",
        )

    def handle(self, *args, **options):
        distributor = ReportDistributor()
        if options["verify_only"]:
            if not distributor.transport.verify():
                raise CommandError("SMTP verification failed")
            self.stdout.write(self.style.SUCCESS("SMTP configuration is valid"))
            return

        ok, message = distributor.send_test_email(options["recipient"])
        if not ok:
            raise CommandError(message)
        self.stdout.write(self.style.SUCCESS(message))
