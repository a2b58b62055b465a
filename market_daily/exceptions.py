from __future__ import annotations

from typing import Literal

FetchErrorKind = Literal["timeout", "blocked", "rate_limited", "not_found", "malformed"]


class MarketDailyError(RuntimeError):
    """Base class for errors raised by the market_daily app."""


class SourceFetchError(MarketDailyError):
    """
    Raised by the fetchers when a news source cannot be read.

    ``kind`` is machine readable so the updater can tell transient problems
    (worth trying again on the next scheduled run) from permanent ones.
    """

    RETRYABLE_KINDS = ("timeout", "rate_limited")

    def __init__(
        self,
        kind: FetchErrorKind,
        source: str,
        message: str = "",
        *,
        status_code: int | None = None,
    ):
        self.kind = kind
        self.source = source
        self.status_code = status_code
        super().__init__(f"{source}: {kind} {message}".rstrip())

    @property
    def retryable(self) -> bool:
        if self.kind in self.RETRYABLE_KINDS:
            return True
        return self.status_code is not None and self.status_code >= 500


class EmailNotConfigured(MarketDailyError):
    """Raised when a send is attempted without an SMTP host configured."""
