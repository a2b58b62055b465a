from django.db import models
from model_utils.models import TimeStampedModel

from market_daily.models.portfolio import Portfolio


class Holding(TimeStampedModel):
    """One tracked stock inside a portfolio."""

    portfolio = models.ForeignKey(
        Portfolio, related_name="holdings", on_delete=models.CASCADE
    )
    symbol = models.CharField(max_length=12)
    name = models.CharField(max_length=120, blank=True, default="")
    sector = models.CharField(max_length=60, blank=True, default="")

    class Meta:
        unique_together = ("portfolio", "symbol")
        ordering = ("id",)

    def __str__(self):
        return f"{self.symbol} ({self.name})" if self.name else self.symbol
