"""Single-source retrieval with transport validation and body decoding."""

from __future__ import annotations

import calendar
import csv
import logging
from datetime import datetime, timezone
from io import StringIO
from typing import Any, List

import feedparser
import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from teamfeed.config import SourceDescriptor, SourceFormat


logger = logging.getLogger(__name__)

USER_AGENT = "teamfeed/0.1 (+https://github.com/teamfeed)"


class FetchError(RuntimeError):
    """Raised when a source cannot be retrieved or decoded."""

    def __init__(self, source: SourceDescriptor, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source.name}: {reason}")


class RetryableFetchError(FetchError):
    """Transient failure (timeout, connection error, 429 or 5xx)."""


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code <= 599


def decode_json(source: SourceDescriptor, response: httpx.Response) -> Any:
    try:
        data = response.json()
    except ValueError as exc:
        raise FetchError(source, f"invalid JSON body: {exc}") from exc
    if not isinstance(data, (dict, list)):
        raise FetchError(source, f"unexpected JSON top-level type {type(data).__name__}")
    return data


def decode_csv(source: SourceDescriptor, response: httpx.Response) -> List[dict[str, str]]:
    text = response.text
    reader = csv.DictReader(StringIO(text))
    try:
        rows = [
            {key.strip(): (value or "").strip() for key, value in row.items() if key is not None}
            for row in reader
        ]
    except csv.Error as exc:
        raise FetchError(source, f"invalid CSV body: {exc}") from exc
    if not reader.fieldnames:
        raise FetchError(source, "CSV body has no header row")
    return rows


def _entry_published(entry: Any) -> str | None:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            stamp = datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
            return stamp.isoformat().replace("+00:00", "Z")
    return entry.get("published") or entry.get("updated")


def decode_feed(source: SourceDescriptor, response: httpx.Response) -> List[dict[str, Any]]:
    feed = feedparser.parse(response.content)
    if feed.bozo and not feed.entries:
        raise FetchError(source, f"unparseable feed: {feed.get('bozo_exception')}")
    items = []
    for entry in feed.entries:
        items.append(
            {
                "title": entry.get("title"),
                "summary": entry.get("summary"),
                "link": entry.get("link"),
                "author": entry.get("author"),
                "published": _entry_published(entry),
            }
        )
    return items


_DECODERS = {
    SourceFormat.JSON: decode_json,
    SourceFormat.CSV: decode_csv,
    SourceFormat.RSS: decode_feed,
}


class SourceFetcher:
    """Perform one retrieval per call against an injected HTTP client.

    Every request carries an explicit timeout. Transient failures are retried
    ``max_retries`` times with a fixed backoff; everything else fails fast.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout_seconds: float = 8.0,
        max_retries: int = 1,
        backoff_seconds: float = 0.5,
    ) -> None:
        self._client = client
        self._timeout = httpx.Timeout(timeout_seconds)
        self._max_retries = max(0, max_retries)
        self._backoff = max(0.0, backoff_seconds)

    async def _get(self, source: SourceDescriptor) -> httpx.Response:
        try:
            response = await self._client.get(
                source.url,
                params=dict(source.params) or None,
                timeout=self._timeout,
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
            )
        except httpx.TimeoutException as exc:
            raise RetryableFetchError(source, f"timed out: {exc!r}") from exc
        except httpx.TransportError as exc:
            raise RetryableFetchError(source, f"transport error: {exc!r}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(source, f"request failed: {exc!r}") from exc
        if _is_retryable_status(response.status_code):
            raise RetryableFetchError(source, f"HTTP {response.status_code}")
        if not response.is_success:
            raise FetchError(source, f"HTTP {response.status_code}")
        return response

    async def fetch(self, source: SourceDescriptor) -> Any:
        """Return the decoded payload for ``source`` or raise :class:`FetchError`."""

        response: httpx.Response | None = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            retry=retry_if_exception_type(RetryableFetchError),
            wait=wait_fixed(self._backoff),
            reraise=True,
        ):
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    logger.info("Retrying %s (attempt %s/%s)", source.name, number, self._max_retries + 1)
                response = await self._get(source)
        if response is None:
            raise FetchError(source, "no response")
        return _DECODERS[source.format](source, response)
