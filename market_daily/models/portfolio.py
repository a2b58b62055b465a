from django.conf import settings
from django.db import models
from model_utils.models import TimeStampedModel


class PortfolioQuerySet(models.QuerySet):
    def public(self):
        return self.filter(is_public=True)


class Portfolio(TimeStampedModel):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="portfolios",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True, default="")
    is_public = models.BooleanField(default=False)

    objects = PortfolioQuerySet.as_manager()

    class Meta:
        ordering = ("id",)

    def __str__(self):
        return self.name
