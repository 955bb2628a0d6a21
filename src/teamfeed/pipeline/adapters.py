"""Source adapters: a fetch strategy paired with a category normalizer."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Tuple

from teamfeed.config import FeedConfig, SourceDescriptor
from teamfeed.ingest import EMPTY_INDEX, EnrichmentIndex, FetchError, SourceFetcher
from teamfeed.models import Category
from teamfeed.normalize import (
    normalize_news,
    normalize_roster,
    normalize_schedule,
    normalize_standings,
    normalize_stats,
)


logger = logging.getLogger(__name__)


class Combine(str, Enum):
    """How the payloads of several sources are handed to the normalizer."""

    FIRST = "first"
    CONCAT = "concat"
    KEYED = "keyed"


@dataclass(frozen=True)
class SourceAdapter:
    category: Category
    sources: Tuple[SourceDescriptor, ...]
    normalize: Callable[[Any], Any]
    combine: Combine = Combine.FIRST

    async def fetch(self, fetcher: SourceFetcher) -> Any:
        """Retrieve every source concurrently.

        Individual source failures are tolerated; :class:`FetchError` is raised
        only when no source produced a payload.
        """

        if not self.sources:
            raise FetchError(SourceDescriptor(name=self.category.value, url=""), "no sources configured")
        if self.combine is Combine.FIRST:
            return await fetcher.fetch(self.sources[0])

        outcomes = await asyncio.gather(
            *(fetcher.fetch(source) for source in self.sources),
            return_exceptions=True,
        )
        payloads: Dict[str, Any] = {}
        errors: list[FetchError] = []
        for source, outcome in zip(self.sources, outcomes):
            if isinstance(outcome, FetchError):
                logger.warning("%s source %s failed: %s", self.category.value, source.name, outcome.reason)
                errors.append(outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            payloads[source.name] = outcome
        if not payloads:
            raise errors[0]

        if self.combine is Combine.KEYED:
            return payloads
        combined: list[Any] = []
        for payload in payloads.values():
            if isinstance(payload, list):
                combined.extend(payload)
            elif isinstance(payload, dict):
                items = payload.get("articles", payload.get("items"))
                if isinstance(items, list):
                    combined.extend(items)
        return combined

    async def run(self, fetcher: SourceFetcher) -> Any:
        payload = await self.fetch(fetcher)
        return self.normalize(payload)


def build_adapters(config: FeedConfig, enrichment: EnrichmentIndex = EMPTY_INDEX) -> Dict[Category, SourceAdapter]:
    """Wire the stock normalizers to the configured sources."""

    normalizers: Dict[Category, Tuple[Callable[[Any], Any], Combine]] = {
        Category.ROSTER: (partial(normalize_roster, enrichment=enrichment), Combine.FIRST),
        Category.SCHEDULE: (
            partial(normalize_schedule, team_id=config.team_id, team_name=config.team_name),
            Combine.FIRST,
        ),
        Category.STATS: (
            partial(normalize_stats, leader_keys=config.leader_keys, top_n=config.leaders_top_n),
            Combine.KEYED,
        ),
        Category.STANDINGS: (
            partial(normalize_standings, team_id=config.team_id, team_name=config.team_name),
            Combine.FIRST,
        ),
        Category.NEWS: (
            partial(
                normalize_news,
                keywords=config.news_keywords,
                limit=config.news_limit,
                snippet_length=config.snippet_length,
            ),
            Combine.CONCAT,
        ),
    }
    return {
        category: SourceAdapter(
            category=category,
            sources=config.sources_for(category),
            normalize=normalize,
            combine=combine,
        )
        for category, (normalize, combine) in normalizers.items()
        if category in config.enabled_categories()
    }
