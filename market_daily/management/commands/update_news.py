from django.core.management import BaseCommand

from market_daily.news.orchestrator import update_news


class Command(BaseCommand):
    help = "Fetch, filter, enrich and store the latest financial news once."

    def handle(self, *args, **options):
        result = update_news()
        if result is None:
            self.stdout.write(self.style.WARNING("A news update is already running"))
            return
        self.stdout.write(
            self.style.SUCCESS(
                f"{result.successes} sources ok, {result.saved} new articles, "
                f"{result.purged} purged (tiers: {', '.join(result.tiers_run)})"
            )
        )
        for source, kind in result.errors.items():
            self.stdout.write(f"  {source}: {kind}")
