"""
Daily digest distribution.

Active subscriptions are split into one group per portfolio plus a general
group.  Each group's report is composed once and reused for every recipient
of the group.  Failures stay local: a group whose report cannot be composed
is skipped, a recipient whose send fails gets a ``failed`` log row, and the
run carries on.  Failed sends are not retried within a run.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from django.conf import settings

from market_daily.models import EmailLog, Portfolio, Subscription
from market_daily.services.email_render import RenderedEmail, general_subject, render_report
from market_daily.services.email_service import OutgoingEmail, SmtpTransport
from market_daily.services.reports import Report, ReportComposer
from market_daily.utils.locks import single_flight

logger = logging.getLogger(__name__)

GENERAL_GROUP = "general"


@dataclass
class DistributionResult:
    sent: int = 0
    failed: int = 0
    failed_groups: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.sent + self.failed


def group_subscriptions(subscriptions: Iterable[Subscription]) -> "OrderedDict[int | None, List[str]]":
    """
    Portfolio groups in portfolio id order, then the general group (key None).
    Recipients keep subscription order.
    """
    portfolio_groups: Dict[int, List[str]] = {}
    general: List[str] = []
    for sub in subscriptions:
        if sub.portfolio_id is None:
            general.append(sub.email)
        else:
            portfolio_groups.setdefault(sub.portfolio_id, []).append(sub.email)

    groups: "OrderedDict[int | None, List[str]]" = OrderedDict(
        (pid, portfolio_groups[pid]) for pid in sorted(portfolio_groups)
    )
    if general:
        groups[None] = general
    return groups


class ReportDistributor:
    LOCK_NAME = "send_daily_report"

    def __init__(
        self,
        transport: SmtpTransport | None = None,
        composer: ReportComposer | None = None,
        renderer: Callable[[Report], RenderedEmail] = render_report,
    ):
        self.transport = transport or SmtpTransport.from_settings()
        self.composer = composer or ReportComposer()
        self.renderer = renderer

    # ------------------------------------------------------------------ #
    # Per-recipient send
    # ------------------------------------------------------------------ #
    def deliver(self, report: Report, recipient: str) -> bool:
        """Render and send one report, logging the outcome.  Never raises."""
        subject = general_subject(report.date)
        try:
            rendered = self.renderer(report)
            subject = rendered.subject
            self.transport.send(
                OutgoingEmail(
                    to=recipient,
                    subject=rendered.subject,
                    html=rendered.html,
                    text=rendered.text,
                )
            )
        except Exception as exc:
            logger.error("Failed to send report to %s: %s", recipient, exc)
            EmailLog.objects.record(recipient, subject, EmailLog.STATUS.failed, str(exc))
            return False

        EmailLog.objects.record(recipient, subject, EmailLog.STATUS.sent)
        return True

    def deliver_all(self, report: Report, recipients: Sequence[str]) -> Tuple[int, int]:
        sent = failed = 0
        for recipient in recipients:
            if self.deliver(report, recipient):
                sent += 1
            else:
                failed += 1
        return sent, failed

    # ------------------------------------------------------------------ #
    # Daily run
    # ------------------------------------------------------------------ #
    def _compose(self, portfolio_id: int | None, target_date=None) -> Report:
        if portfolio_id is None:
            return self.composer.compose_general_report()
        return self.composer.compose_portfolio_report(portfolio_id, target_date)

    def send_daily_report(self) -> DistributionResult | None:
        """
        Send today's digests to every active subscriber.  Returns None when
        another distribution run holds the lock.
        """
        timeout = getattr(settings, "DISTRIBUTION_LOCK_TIMEOUT", 60 * 60)
        with single_flight(self.LOCK_NAME, timeout) as acquired:
            if not acquired:
                return None
            return self._send_daily_report()

    def _send_daily_report(self) -> DistributionResult:
        result = DistributionResult()
        groups = group_subscriptions(Subscription.objects.active().order_by("id"))
        if not groups:
            logger.info("No active subscriptions, nothing to send")
            return result

        for portfolio_id, recipients in groups.items():
            label = GENERAL_GROUP if portfolio_id is None else f"portfolio {portfolio_id}"
            try:
                report = self._compose(portfolio_id)
            except Exception:
                logger.exception("Could not compose report for %s, skipping group", label)
                result.failed_groups.append(label)
                continue

            sent, failed = self.deliver_all(report, recipients)
            result.sent += sent
            result.failed += failed
            logger.info("%s: %d sent, %d failed", label, sent, failed)

        logger.info(
            "Daily report run finished: %d sent, %d failed, %d groups skipped",
            result.sent,
            result.failed,
            len(result.failed_groups),
        )
        return result

    # ------------------------------------------------------------------ #
    # Operator actions
    # ------------------------------------------------------------------ #
    def send_portfolio_reports(self, portfolio_ids: Iterable[int], target_date=None) -> List[dict]:
        results = []
        for portfolio_id in portfolio_ids:
            try:
                portfolio = Portfolio.objects.get(pk=portfolio_id)
            except Portfolio.DoesNotExist:
                results.append(
                    {"portfolio_id": portfolio_id, "status": "failed", "error": "Portfolio not found"}
                )
                continue

            recipients = list(
                portfolio.subscriptions.active().order_by("id").values_list("email", flat=True)
            )
            if not recipients:
                results.append(
                    {
                        "portfolio_id": portfolio_id,
                        "portfolio_name": portfolio.name,
                        "status": "skipped",
                        "reason": "No active subscribers",
                    }
                )
                continue

            try:
                report = self.composer.compose_portfolio_report(portfolio_id, target_date)
            except Exception as exc:
                logger.exception("Could not compose report for portfolio %s", portfolio_id)
                results.append(
                    {
                        "portfolio_id": portfolio_id,
                        "portfolio_name": portfolio.name,
                        "status": "failed",
                        "error": str(exc),
                    }
                )
                continue

            sent, failed = self.deliver_all(report, recipients)
            results.append(
                {
                    "portfolio_id": portfolio_id,
                    "portfolio_name": portfolio.name,
                    "status": "completed",
                    "sent": sent,
                    "failed": failed,
                    "total": len(recipients),
                }
            )
        return results

    def regenerate_report(self, portfolio_id: int, emails: Sequence[str], target_date=None) -> dict:
        """Compose a (possibly past) report and send it to an explicit list."""
        report = self.composer.compose_portfolio_report(portfolio_id, target_date)
        sent, failed = self.deliver_all(report, emails)
        return {
            "portfolio_id": portfolio_id,
            "date": report.date.isoformat(),
            "sent": sent,
            "failed": failed,
            "total": len(emails),
        }

    def send_test_email(self, recipient: str) -> Tuple[bool, str]:
        try:
            report = self.composer.compose_general_report()
        except Exception as exc:
            logger.exception("Could not compose test report")
            return False, f"Could not compose report: {exc}"
        if self.deliver(report, recipient):
            return True, f"Test email sent to {recipient}"
        return False, f"Failed to send test email to {recipient}"


def send_daily_report() -> DistributionResult | None:
    return ReportDistributor().send_daily_report()
