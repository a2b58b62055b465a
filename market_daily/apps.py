from django.apps import AppConfig


class MarketDailyConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "market_daily"
    verbose_name = "Market Daily"
