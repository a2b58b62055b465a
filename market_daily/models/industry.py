from django.db import models
from model_utils.models import TimeStampedModel


class Industry(TimeStampedModel):
    """A watched industry; matched against headlines like a holding."""

    name = models.CharField(max_length=80)
    keywords = models.TextField(blank=True, default="")  # comma separated

    class Meta:
        verbose_name_plural = "industries"
        ordering = ("id",)

    def keyword_list(self) -> list[str]:
        return [kw.strip() for kw in self.keywords.split(",") if kw.strip()]

    def __str__(self):
        return self.name
