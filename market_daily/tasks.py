from __future__ import annotations

import logging
from typing import List

from celery import shared_task
from celery.schedules import crontab
from django.conf import settings

from market_daily.celery import app
from market_daily.news.orchestrator import update_news
from market_daily.services.distribution import ReportDistributor, send_daily_report

logger = logging.getLogger(__name__)

###############################################################################
# Configuration – override in settings.py if required
###############################################################################

DEFAULT_EMAIL_SCHEDULE = "0 8 * * 1-5"


def _crontab_from_expr(expr: str) -> crontab:
    """Five-field cron expression (minute hour day month weekday) -> crontab."""
    fields = expr.split()
    if len(fields) != 5:
        logger.warning("Invalid EMAIL_SCHEDULE %r, using %r", expr, DEFAULT_EMAIL_SCHEDULE)
        fields = DEFAULT_EMAIL_SCHEDULE.split()
    minute, hour, day_of_month, month_of_year, day_of_week = fields
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


###############################################################################
# Celery tasks
###############################################################################


@shared_task
def update_news_task() -> str:
    result = update_news()
    if result is None:
        return "News update already running"
    msg = (
        f"News update finished: {result.successes} sources ok, "
        f"{result.saved} saved, {result.purged} purged"
    )
    logger.info(msg)
    return msg


@shared_task
def send_daily_report_task() -> str:
    result = send_daily_report()
    if result is None:
        return "Daily report already running"
    msg = f"Daily report: {result.sent} sent, {result.failed} failed"
    logger.info(msg)
    return msg


@shared_task
def send_portfolio_reports_task(portfolio_ids: List[int], target_date: str | None = None):
    return ReportDistributor().send_portfolio_reports(portfolio_ids, target_date)


###############################################################################
# Periodic job registration
###############################################################################


@app.on_after_configure.connect
def setup_periodic_tasks(sender, **kwargs):
    sender.add_periodic_task(
        crontab(minute=0),  # hourly
        update_news_task.s(),
        name="Update financial news",
    )
    sender.add_periodic_task(
        _crontab_from_expr(getattr(settings, "EMAIL_SCHEDULE", DEFAULT_EMAIL_SCHEDULE)),
        send_daily_report_task.s(),
        name="Send daily report",
    )
