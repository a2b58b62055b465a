from django.db import models
from model_utils.models import TimeStampedModel

from market_daily.models.portfolio import Portfolio


class SubscriptionQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class Subscription(TimeStampedModel):
    """A digest subscription; no portfolio means the general digest."""

    email = models.EmailField()
    portfolio = models.ForeignKey(
        Portfolio,
        related_name="subscriptions",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
    )
    is_active = models.BooleanField(default=True)

    objects = SubscriptionQuerySet.as_manager()

    class Meta:
        ordering = ("id",)
        constraints = [
            models.UniqueConstraint(
                fields=["email", "portfolio"], name="uniq_subscription_email_portfolio"
            ),
            # NULL portfolio rows are not covered by the constraint above
            models.UniqueConstraint(
                fields=["email"],
                condition=models.Q(portfolio__isnull=True),
                name="uniq_general_subscription_email",
            ),
        ]

    def __str__(self):
        target = self.portfolio.name if self.portfolio_id else "general"
        return f"{self.email} -> {target}"
