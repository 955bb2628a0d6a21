"""Concurrent fetch-normalize-fallback aggregation."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

import httpx
from pydantic import BaseModel

from teamfeed.config import FeedConfig
from teamfeed.fallback import resolve_fallback
from teamfeed.ingest import EMPTY_INDEX, FetchError, SourceFetcher, load_enrichment_index
from teamfeed.models import Category
from teamfeed.pipeline.adapters import SourceAdapter, build_adapters


logger = logging.getLogger(__name__)

LIVE = "live"
FALLBACK = "fallback"


@dataclass(frozen=True)
class CategoryResult:
    category: Category
    value: Any
    live: bool
    reason: Optional[str] = None


@dataclass
class AggregateResult:
    """Per-category values in canonical order, with provenance."""

    results: Dict[Category, CategoryResult]
    extras: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, category: Category) -> Any:
        return self.results[Category(category)].value

    @property
    def provenance(self) -> Dict[str, str]:
        return {category.value: (LIVE if result.live else FALLBACK) for category, result in self.results.items()}

    @property
    def fallback_categories(self) -> List[str]:
        return [category.value for category, result in self.results.items() if not result.live]

    def to_payload(self) -> Dict[str, Any]:
        payload = {category.value: _dump(result.value) for category, result in self.results.items()}
        payload.update({key: _dump(value) for key, value in self.extras.items()})
        return payload


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [_dump(item) for item in value]
    if isinstance(value, Mapping):
        return {key: _dump(item) for key, item in value.items()}
    return value


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    is_empty = getattr(value, "is_empty", None)
    return bool(is_empty()) if callable(is_empty) else False


async def with_fallback(
    category: Category,
    task: Awaitable[Any],
    snapshot: Callable[[], Any],
) -> CategoryResult:
    """Await ``task``; on failure or empty data substitute ``snapshot()``.

    This is the only place a category degrades. Fetch and normalizer errors
    are logged and absorbed; cancellation propagates.
    """

    try:
        value = await task
    except FetchError as exc:
        reason = exc.reason
        logger.warning("Using fallback %s data: source %s failed: %s", category.value, exc.source.name, reason)
    except Exception as exc:  # noqa: BLE001 - a broken normalizer must not fail the aggregate
        reason = f"{type(exc).__name__}: {exc}"
        logger.exception("Using fallback %s data: unexpected error", category.value)
    else:
        if not _is_empty(value):
            return CategoryResult(category=category, value=value, live=True)
        reason = "no usable data"
        logger.warning("Using fallback %s data: %s", category.value, reason)
    return CategoryResult(category=category, value=snapshot(), live=False, reason=reason)


async def aggregate(
    config: FeedConfig,
    *,
    client: httpx.AsyncClient | None = None,
    adapters: Mapping[Category, SourceAdapter] | None = None,
) -> AggregateResult:
    """Fetch every enabled category concurrently and merge the results.

    The enrichment index (if a source is configured) is built before the
    fan-out. A client created here is closed on return or cancellation.
    """

    async with AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(httpx.AsyncClient(timeout=config.timeout_seconds))
        fetcher = SourceFetcher(
            client,
            timeout_seconds=config.timeout_seconds,
            max_retries=config.max_retries,
            backoff_seconds=config.backoff_seconds,
        )

        categories = config.enabled_categories()
        if adapters is None:
            enrichment = EMPTY_INDEX
            if Category.ROSTER in categories:
                enrichment = await load_enrichment_index(fetcher, config)
            adapters = build_adapters(config, enrichment)

        tasks = []
        for category in categories:
            adapter = adapters.get(category)
            work = adapter.run(fetcher) if adapter is not None else _missing_adapter(category)
            tasks.append(with_fallback(category, work, lambda category=category: resolve_fallback(category)))
        outcomes = await asyncio.gather(*tasks)

    result = AggregateResult(results={outcome.category: outcome for outcome in outcomes})
    if config.include_social:
        result.extras["social"] = list(config.social_links)
    logger.info(
        "Aggregate complete: live=%s fallback=%s",
        [name for name, state in result.provenance.items() if state == LIVE],
        result.fallback_categories,
    )
    return result


async def _missing_adapter(category: Category) -> Any:
    raise LookupError(f"no adapter registered for {category.value}")
