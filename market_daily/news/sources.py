"""
Source registry and per-source fetchers.

Sources come in three tiers, tried by the updater in this order:

    1. RSS feeds                     (no key, most stable)
    2. NewsAPI /v2/everything        (needs NEWSAPI_KEY)
    3. HTML scrape of news pages     (last resort, layout dependent)

Every fetcher returns a list of ``RawCandidate`` or raises
``SourceFetchError`` with a machine readable ``kind``.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Sequence
from urllib.parse import urljoin, urlparse

import feedparser
import requests
from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from django.conf import settings

from market_daily.exceptions import SourceFetchError

logger = logging.getLogger(__name__)
UTC = dt.timezone.utc

SourceKind = Literal["rss", "api", "scrape"]

RSS_TIMEOUT = 10
API_TIMEOUT = 15
SCRAPE_TIMEOUT = 15

RSS_ITEM_LIMIT = 20
API_KEYWORD_LIMIT = 15
API_PAGE_SIZE = 100
API_ARTICLE_LIMIT = 50
API_LOOKBACK_DAYS = 7

NEWSAPI_BASE_URL = "https://newsapi.org/v2"

_BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
FEED_HEADERS = {"User-Agent": _BROWSER_UA}
SCRAPE_HEADERS = {
    "User-Agent": _BROWSER_UA,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Cache-Control": "max-age=0",
}

# used for the API query when nobody tracks anything yet
GENERIC_QUERY_KEYWORDS = [
    "Apple",
    "Microsoft",
    "Google",
    "Tesla",
    "Amazon",
    "stock market",
    "earnings",
    "finance",
    "investment",
    "S&P 500",
    "Nasdaq",
    "Dow Jones",
    "Federal Reserve",
]
SUPPLEMENTAL_QUERY_KEYWORDS = ["stock market", "finance", "earnings", "investment"]


# --------------------------------------------------------------------------- #
#  Types
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class Source:
    name: str
    kind: SourceKind
    endpoint: str
    tier: int
    selector: str = ""


@dataclass
class RawCandidate:
    title: str
    url: str
    source: str
    description: str = ""
    published_at: dt.datetime | None = None


@dataclass
class Universe:
    """Holdings and watched industries the pipeline matches news against."""

    holdings: Sequence = field(default_factory=list)
    industries: Sequence = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.holdings and not self.industries


# --------------------------------------------------------------------------- #
#  Registry
# --------------------------------------------------------------------------- #
RSS_SOURCES: List[Source] = [
    Source("BBC Business", "rss", "http://feeds.bbci.co.uk/news/business/rss.xml", 1),
    Source("CNN Business", "rss", "http://rss.cnn.com/rss/edition.rss", 1),
    Source("Yahoo Finance", "rss", "https://finance.yahoo.com/rss/", 1),
    Source("MarketWatch", "rss", "http://feeds.marketwatch.com/marketwatch/topstories/", 1),
    Source("Bloomberg Markets", "rss", "https://feeds.bloomberg.com/markets/news.rss", 1),
    Source("CNBC Markets", "rss", "https://www.cnbc.com/id/20910258/device/rss/rss.html", 1),
    Source("Forbes Business", "rss", "https://www.forbes.com/business/feed/", 1),
    Source("Business Insider", "rss", "https://www.businessinsider.com/rss", 1),
    Source("Seeking Alpha", "rss", "https://seekingalpha.com/feed.xml", 1),
    Source("The Motley Fool", "rss", "https://www.fool.com/feeds/index.aspx", 1),
    Source(
        "Barrons Real-time",
        "rss",
        "https://feeds.content.dowjones.io/public/rss/mw_realtimeheadlines",
        1,
    ),
    Source("TechCrunch", "rss", "https://feeds.feedburner.com/TechCrunch/", 1),
    Source("WSJ Markets", "rss", "https://feeds.a.dj.com/rss/RSSMarketsMain.xml", 1),
]

API_SOURCES: List[Source] = [
    Source("News API", "api", f"{NEWSAPI_BASE_URL}/everything", 2),
]

SCRAPE_SOURCES: List[Source] = [
    Source(
        "Reuters Finance",
        "scrape",
        "https://www.reuters.com/business/finance/",
        3,
        selector='a[data-testid="Heading"]',
    ),
    Source(
        "Yahoo Finance",
        "scrape",
        "https://finance.yahoo.com/news/",
        3,
        selector=".content a.titles",
    ),
    Source(
        "MarketWatch",
        "scrape",
        "https://www.marketwatch.com/latest-news",
        3,
        selector="h3.article__headline a",
    ),
]

SOURCES: List[Source] = RSS_SOURCES + API_SOURCES + SCRAPE_SOURCES


def sources_of_kind(kind: SourceKind, sources: Sequence[Source] = SOURCES) -> List[Source]:
    return sorted((s for s in sources if s.kind == kind), key=lambda s: s.tier)


# --------------------------------------------------------------------------- #
#  HTTP helpers
# --------------------------------------------------------------------------- #
def _parse_dt(raw: str | None) -> dt.datetime | None:
    """Robust ISO/HTTP date → tz-aware UTC datetime or None."""
    if not raw:
        return None
    try:
        dt_obj = date_parser.parse(raw)
        if dt_obj.tzinfo is None:
            dt_obj = dt_obj.replace(tzinfo=UTC)
        return dt_obj.astimezone(UTC)
    except (ValueError, OverflowError):
        logger.debug("Date-parse failed for %s", raw)
        return None


def _status_kind(status: int) -> str:
    if status in (401, 403, 451):
        return "blocked"
    if status == 429:
        return "rate_limited"
    if status >= 500:
        return "blocked"
    return "not_found"


def http_get(source_name: str, url: str, *, timeout: float, **kwargs) -> requests.Response:
    """
    GET that maps every transport problem onto ``SourceFetchError``.
    Status codes >= 400 are errors too.
    """
    try:
        resp = requests.get(url, timeout=timeout, **kwargs)
    except requests.Timeout as exc:
        raise SourceFetchError("timeout", source_name, str(exc)) from exc
    except requests.ConnectionError as exc:
        # DNS failures, refused connections, resets
        raise SourceFetchError("not_found", source_name, str(exc)) from exc
    except requests.RequestException as exc:
        raise SourceFetchError("malformed", source_name, str(exc)) from exc

    if resp.status_code >= 400:
        raise SourceFetchError(
            _status_kind(resp.status_code),
            source_name,
            f"HTTP {resp.status_code} {resp.reason or ''}".strip(),
            status_code=resp.status_code,
        )
    return resp


# --------------------------------------------------------------------------- #
#  1) RSS
# --------------------------------------------------------------------------- #
def fetch_rss(source: Source, universe: Universe | None = None) -> List[RawCandidate]:
    resp = http_get(source.name, source.endpoint, timeout=RSS_TIMEOUT, headers=FEED_HEADERS)
    feed = feedparser.parse(resp.content)
    if feed.bozo and not feed.entries:
        raise SourceFetchError(
            "malformed", source.name, f"invalid feed: {feed.get('bozo_exception')}"
        )

    logger.debug("%s: %d feed entries", source.name, len(feed.entries))
    out = []
    for entry in feed.entries[:RSS_ITEM_LIMIT]:
        title = (entry.get("title") or "").strip()
        link = entry.get("link")
        if not title or not link:
            continue
        out.append(
            RawCandidate(
                title=title,
                url=link,
                source=source.name,
                description=entry.get("summary", "") or "",
                published_at=_parse_dt(entry.get("published") or entry.get("updated")),
            )
        )
    return out


# --------------------------------------------------------------------------- #
#  2) NewsAPI
# --------------------------------------------------------------------------- #
def build_api_query(universe: Universe | None) -> str:
    """OR-query of tracked symbols, names and industry keywords."""
    keywords: List[str] = []
    if universe is None or universe.is_empty:
        keywords.extend(GENERIC_QUERY_KEYWORDS)
    else:
        for holding in universe.holdings:
            keywords.append(holding.symbol)
            if holding.name:
                keywords.append(holding.name)
        for industry in universe.industries:
            keywords.append(industry.name)
            keywords.extend(industry.keyword_list())
        keywords.extend(SUPPLEMENTAL_QUERY_KEYWORDS)

    seen, uniq = set(), []
    for kw in keywords:
        if kw and kw.lower() not in seen:
            uniq.append(kw)
            seen.add(kw.lower())
    return " OR ".join(uniq[:API_KEYWORD_LIMIT])


def fetch_api(
    source: Source,
    universe: Universe | None = None,
    *,
    api_key: str | None = None,
) -> List[RawCandidate]:
    api_key = api_key or getattr(settings, "NEWSAPI_KEY", "")
    if not api_key:
        raise SourceFetchError("blocked", source.name, "NEWSAPI_KEY not configured")

    since = dt.datetime.now(UTC) - dt.timedelta(days=API_LOOKBACK_DAYS)
    params = {
        "q": build_api_query(universe),
        "apiKey": api_key,
        "sortBy": "publishedAt",
        "pageSize": API_PAGE_SIZE,
        "language": "en",
        "from": since.isoformat(timespec="seconds"),
    }
    logger.info("News API query: %s", params["q"])
    resp = http_get(source.name, source.endpoint, timeout=API_TIMEOUT, params=params)
    try:
        payload = resp.json()
    except ValueError as exc:
        raise SourceFetchError("malformed", source.name, "invalid JSON") from exc

    if not isinstance(payload, dict):
        raise SourceFetchError("malformed", source.name, "unexpected JSON body")

    if payload.get("status") != "ok":
        code = str(payload.get("code") or "")
        kind = "rate_limited" if code == "rateLimited" else "malformed"
        if code.startswith("apiKey"):
            kind = "blocked"
        raise SourceFetchError(kind, source.name, payload.get("message") or code)

    articles = payload.get("articles")
    if not isinstance(articles, list):
        articles = []
    logger.info("News API returned %d articles", len(articles))

    out = []
    for item in articles[:API_ARTICLE_LIMIT]:
        if not isinstance(item, dict) or not item.get("title") or not item.get("url"):
            continue
        out.append(
            RawCandidate(
                title=item["title"],
                url=item["url"],
                source=source.name,
                description=item.get("description") or "",
                published_at=_parse_dt(item.get("publishedAt")),
            )
        )
    return out


# --------------------------------------------------------------------------- #
#  3) HTML scrape
# --------------------------------------------------------------------------- #
def fetch_scrape(source: Source, universe: Universe | None = None) -> List[RawCandidate]:
    resp = http_get(
        source.name,
        source.endpoint,
        timeout=SCRAPE_TIMEOUT,
        headers=SCRAPE_HEADERS,
        allow_redirects=True,
    )
    parsed = urlparse(source.endpoint)
    origin = f"{parsed.scheme}://{parsed.netloc}"

    soup = BeautifulSoup(resp.text, "html.parser")
    out = []
    for el in soup.select(source.selector):
        title = el.get_text(strip=True)
        href = el.get("href")
        if not title or not href:
            continue
        out.append(RawCandidate(title=title, url=urljoin(origin, href), source=source.name))
    return out


_FETCHERS: Dict[str, Callable[..., List[RawCandidate]]] = {
    "rss": fetch_rss,
    "api": fetch_api,
    "scrape": fetch_scrape,
}


def fetch(source: Source, universe: Universe | None = None, **kwargs) -> List[RawCandidate]:
    """
    Fetch candidates from one source.  Every failure surfaces as
    ``SourceFetchError``; anything unexpected while reading a response
    counts as ``malformed``.
    """
    try:
        return _FETCHERS[source.kind](source, universe, **kwargs)
    except SourceFetchError:
        raise
    except Exception as exc:
        logger.debug("Unexpected error reading %s", source.name, exc_info=True)
        raise SourceFetchError("malformed", source.name, f"{type(exc).__name__}: {exc}") from exc
