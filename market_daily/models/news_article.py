from django.db import models
from model_utils.models import TimeStampedModel


class NewsArticleQuerySet(models.QuerySet):
    def url_exists(self, url: str) -> bool:
        return self.filter(url=url).exists()

    def recent(self, limit: int):
        return self.order_by("-created", "-id")[:limit]

    def ingested_between(self, start, end):
        return self.filter(created__gte=start, created__lte=end).order_by(
            "-created", "-id"
        )

    def older_than(self, timestamp):
        return self.filter(created__lt=timestamp)


class NewsArticle(TimeStampedModel):
    """
    One ingested article.  ``created`` is the ingestion time and drives both
    the reports and the retention sweep.  Rows are written once and never
    updated; ``symbols`` reflects the holdings known at ingestion.
    """

    title = models.TextField()
    url = models.URLField(max_length=500, unique=True)
    source = models.CharField(max_length=80, blank=True, default="")
    content = models.TextField(null=True, blank=True)
    summary = models.TextField(blank=True, default="")
    category = models.CharField(max_length=80, default="general", db_index=True)
    symbols = models.JSONField(default=list, blank=True)
    sentiment = models.FloatField(default=0.0)
    published_at = models.DateTimeField(null=True, blank=True)

    objects = NewsArticleQuerySet.as_manager()

    class Meta:
        ordering = ("-created",)
        indexes = [models.Index(fields=["-created"], name="news_created_idx")]

    def __str__(self):
        return self.title
