"""Deployment configuration for the aggregator."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from teamfeed.models import Category, SocialLink


logger = logging.getLogger(__name__)

_CONFIG_PATH_ENV = "TEAMFEED_CONFIG"
_TIMEOUT_ENV = "TEAMFEED_TIMEOUT"
_MAX_RETRIES_ENV = "TEAMFEED_MAX_RETRIES"
_NEWS_LIMIT_ENV = "TEAMFEED_NEWS_LIMIT"
_TOP_N_ENV = "TEAMFEED_TOP_N"
_SEASON_ID_ENV = "TEAMFEED_SEASON_ID"
_ENRICHMENT_URL_ENV = "TEAMFEED_ENRICHMENT_URL"

SDP_BASE_URL = "https://api-sdp.nwslsoccer.com/v1/nwsl/football"
DEFAULT_TEAM_ID = "nwsl::Football_Team::c83f2ca05aa84c738b5373f0d2a31b39"
DEFAULT_SEASON_ID = "nwsl::Football_Season::fad050beee834db88fa9f2eb28ce5a5c"
DEFAULT_TEAM_NAME = "Gotham FC"


class SourceFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    RSS = "rss"


@dataclass(frozen=True)
class SourceDescriptor:
    """A single upstream retrieval target."""

    name: str
    url: str
    format: SourceFormat = SourceFormat.JSON
    params: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FeedConfig:
    team_id: str
    team_name: str
    season_id: str
    league_name: str
    sources: Mapping[Category, Tuple[SourceDescriptor, ...]]
    enrichment_source: Optional[SourceDescriptor] = None
    enrichment_columns: Mapping[str, str] = field(
        default_factory=lambda: {"name": "Name", "headshot": "Headshot", "page_url": "Page URL"}
    )
    news_keywords: Tuple[str, ...] = ()
    leader_keys: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    leaders_top_n: int = 3
    snippet_length: int = 150
    news_limit: int = 20
    include_news: bool = True
    include_standings: bool = True
    include_social: bool = False
    social_links: Tuple[SocialLink, ...] = ()
    timeout_seconds: float = 8.0
    max_retries: int = 1
    backoff_seconds: float = 0.5

    def enabled_categories(self) -> Tuple[Category, ...]:
        """Categories served by this deployment, in canonical output order."""

        disabled = set()
        if not self.include_news:
            disabled.add(Category.NEWS)
        if not self.include_standings:
            disabled.add(Category.STANDINGS)
        return tuple(category for category in Category if category not in disabled)

    def sources_for(self, category: Category) -> Tuple[SourceDescriptor, ...]:
        return tuple(self.sources.get(category, ()))


_DEFAULT_LEADER_KEYS: Dict[str, Tuple[str, ...]] = {
    "standard": ("goals", "assists"),
    "shooting": ("shots-on-target",),
    "passing": ("accurate-passes",),
    "defending": ("tackles-won",),
    "goalkeeping": ("saves",),
}

_DEFAULT_NEWS_KEYWORDS: Tuple[str, ...] = (
    "gotham fc",
    "gotham",
    "nj/ny gotham",
    "ny/nj gotham",
    "nwsl",
)

_DEFAULT_SOCIAL_LINKS: Tuple[SocialLink, ...] = (
    SocialLink(platform="instagram", handle="@gothamfc", url="https://www.instagram.com/gothamfc/"),
    SocialLink(platform="x", handle="@GothamFC", url="https://x.com/GothamFC"),
    SocialLink(platform="tiktok", handle="@gothamfc", url="https://www.tiktok.com/@gothamfc"),
)


def _stats_source(name: str, season_id: str, team_id: str) -> SourceDescriptor:
    return SourceDescriptor(
        name=name,
        url=f"{SDP_BASE_URL}/seasons/{season_id}/stats/teams/{team_id}",
        params={"locale": "en-US", "category": name},
    )


def default_config(
    *,
    team_id: str = DEFAULT_TEAM_ID,
    season_id: str = DEFAULT_SEASON_ID,
    team_name: str = DEFAULT_TEAM_NAME,
) -> FeedConfig:
    """Build the stock configuration for the configured team and season."""

    sources = {
        Category.ROSTER: (
            SourceDescriptor(
                name="sdp-roster",
                url=f"{SDP_BASE_URL}/teams/{team_id}/roster",
                params={"locale": "en-US", "seasonId": season_id},
            ),
        ),
        Category.SCHEDULE: (
            SourceDescriptor(
                name="sdp-matches",
                url=f"{SDP_BASE_URL}/seasons/{season_id}/matches",
                params={"locale": "en-US"},
            ),
        ),
        Category.STATS: tuple(
            _stats_source(name, season_id, team_id)
            for name in ("general", "standard", "shooting", "passing", "defending", "goalkeeping")
        ),
        Category.STANDINGS: (
            SourceDescriptor(
                name="sdp-standings",
                url=f"{SDP_BASE_URL}/seasons/{season_id}/standings/overall",
                params={"locale": "en-US", "orderBy": "rank", "direction": "asc"},
            ),
        ),
        Category.NEWS: (
            SourceDescriptor(
                name="google-news",
                url="https://news.google.com/rss/search",
                format=SourceFormat.RSS,
                params={"q": f'"{team_name}"', "hl": "en-US", "gl": "US", "ceid": "US:en"},
            ),
            SourceDescriptor(
                name="nwsl-news",
                url="https://www.nwslsoccer.com/rss/news",
                format=SourceFormat.RSS,
            ),
        ),
    }
    return FeedConfig(
        team_id=team_id,
        team_name=team_name,
        season_id=season_id,
        league_name="NWSL",
        sources=MappingProxyType(sources),
        news_keywords=_DEFAULT_NEWS_KEYWORDS,
        leader_keys=MappingProxyType(dict(_DEFAULT_LEADER_KEYS)),
        social_links=_DEFAULT_SOCIAL_LINKS,
    )


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _reseason_sources(config: FeedConfig, season_id: str) -> Mapping[Category, Tuple[SourceDescriptor, ...]]:
    """Move stock sources to ``season_id``; customised categories are left untouched."""

    stock = default_config(team_id=config.team_id, season_id=config.season_id, team_name=config.team_name)
    moved = default_config(team_id=config.team_id, season_id=season_id, team_name=config.team_name)
    sources = dict(config.sources)
    for category, current in config.sources.items():
        if tuple(current) == stock.sources_for(category):
            sources[category] = moved.sources_for(category)
        else:
            logger.info("Keeping custom %s sources for season override %s", category.value, season_id)
    return MappingProxyType(sources)


def apply_env_overrides(config: FeedConfig) -> FeedConfig:
    """Return ``config`` with ``TEAMFEED_*`` environment overrides applied."""

    season_id = os.getenv(_SEASON_ID_ENV, "").strip()
    if season_id and season_id != config.season_id:
        config = replace(config, season_id=season_id, sources=_reseason_sources(config, season_id))

    enrichment_url = os.getenv(_ENRICHMENT_URL_ENV, "").strip()
    if enrichment_url:
        config = replace(
            config,
            enrichment_source=SourceDescriptor(name="enrichment", url=enrichment_url, format=SourceFormat.CSV),
        )

    return replace(
        config,
        timeout_seconds=_env_float(_TIMEOUT_ENV, config.timeout_seconds, clamp_min=0.1),
        max_retries=_env_int(_MAX_RETRIES_ENV, config.max_retries, min_value=0),
        news_limit=_env_int(_NEWS_LIMIT_ENV, config.news_limit, min_value=1),
        leaders_top_n=_env_int(_TOP_N_ENV, config.leaders_top_n, min_value=1),
    )


def load_config(path: Path | None = None) -> FeedConfig:
    """Resolve the effective configuration.

    Order: stock defaults, then the JSON profile (``path`` or ``$TEAMFEED_CONFIG``),
    then environment overrides.
    """

    from teamfeed.config_loader import ConfigProfile

    config = default_config()
    if path is None:
        env_path = os.getenv(_CONFIG_PATH_ENV, "").strip()
        path = Path(env_path) if env_path else None
    if path is not None:
        config = ConfigProfile.load(path).apply(config)
    return apply_env_overrides(config)
