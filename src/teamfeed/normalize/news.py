"""News normalization for RSS/Atom feed items and JSON article lists."""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

from teamfeed.models import NewsItem


logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_SNIPPET_LENGTH = 150
ELLIPSIS = "..."

_TAG_RE = re.compile(r"<[^>]+>")
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def strip_html(value: str) -> str:
    text = _TAG_RE.sub(" ", value)
    return " ".join(html.unescape(text).split())


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, on a word boundary when one is close."""

    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    cut = text[:limit]
    space = cut.rfind(" ")
    if space >= limit // 2:
        cut = cut[:space]
    return cut.rstrip(" ,.;:-") + ELLIPSIS


def parse_published(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        stamp = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            stamp = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return None
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp.astimezone(timezone.utc)


def source_label(author: Any, url: str) -> str:
    if isinstance(author, str) and author.strip():
        return author.strip()
    host = urlparse(url).hostname or ""
    if host.startswith("www."):
        host = host[4:]
    return host or "Unknown"


def _first_text(item: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _author(item: Mapping[str, Any]) -> Optional[str]:
    author = _first_text(item, ("author",))
    if author:
        return author
    source = item.get("source")
    if isinstance(source, Mapping):
        return _first_text(source, ("name", "title"))
    if isinstance(source, str) and source.strip():
        return source.strip()
    return None


def _matches(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.casefold()
    return any(word.casefold() in lowered for word in keywords if word)


def _to_candidate(
    item: Mapping[str, Any],
    *,
    keywords: Sequence[str],
    snippet_length: int,
) -> Optional[Tuple[datetime, NewsItem]]:
    title = _first_text(item, ("title",))
    url = _first_text(item, ("link", "url"))
    if title is None or url is None:
        return None
    title = strip_html(title)
    body = strip_html(_first_text(item, ("summary", "description", "content")) or "")
    if keywords and not (_matches(title, keywords) or _matches(body, keywords)):
        return None
    published = parse_published(_first_text(item, ("published", "publishedAt", "pubDate", "updated")))
    news = NewsItem(
        source=source_label(_author(item), url),
        date=published.date().isoformat() if published else "",
        title=title,
        snippet=truncate(body, snippet_length),
        url=url,
    )
    return (published or _EPOCH), news


def normalize_news(
    items: Any,
    *,
    keywords: Sequence[str] = (),
    limit: int = DEFAULT_LIMIT,
    snippet_length: int = DEFAULT_SNIPPET_LENGTH,
) -> Optional[List[NewsItem]]:
    """Filter, de-duplicate, sort (newest first) and cap article-like items."""

    if isinstance(items, Mapping):
        items = items.get("articles", items.get("items"))
    if not isinstance(items, list):
        return None

    candidates: List[Tuple[datetime, NewsItem]] = []
    seen_urls: set[str] = set()
    for idx, item in enumerate(items):
        if not isinstance(item, Mapping):
            continue
        try:
            candidate = _to_candidate(item, keywords=keywords, snippet_length=snippet_length)
        except (TypeError, ValueError) as exc:
            logger.debug("Skipping news item %s: %s", idx, exc)
            continue
        if candidate is None or candidate[1].url in seen_urls:
            continue
        seen_urls.add(candidate[1].url)
        candidates.append(candidate)

    candidates.sort(key=lambda pair: pair[0], reverse=True)
    news = [item for _, item in candidates[: max(0, limit)]]
    return news or None
