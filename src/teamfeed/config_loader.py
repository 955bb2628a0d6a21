"""Persist and load JSON configuration profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Optional

from teamfeed.config.settings import FeedConfig, SourceDescriptor, SourceFormat, default_config
from teamfeed.models import Category


class ConfigError(ValueError):
    """Raised when a configuration profile cannot be parsed."""


_SCALAR_FIELDS = (
    "leaders_top_n",
    "snippet_length",
    "news_limit",
    "include_news",
    "include_standings",
    "include_social",
    "timeout_seconds",
    "max_retries",
    "backoff_seconds",
)


def _parse_source(raw: Any, *, where: str) -> SourceDescriptor:
    if not isinstance(raw, dict) or not raw.get("url"):
        raise ConfigError(f"{where}: source entries need at least a 'url'")
    try:
        fmt = SourceFormat(str(raw.get("format", "json")).lower())
    except ValueError:
        raise ConfigError(f"{where}: unknown source format {raw.get('format')!r}") from None
    params = raw.get("params") or {}
    if not isinstance(params, dict):
        raise ConfigError(f"{where}: 'params' must be an object")
    return SourceDescriptor(
        name=str(raw.get("name") or where),
        url=str(raw["url"]),
        format=fmt,
        params={str(k): str(v) for k, v in params.items()},
    )


def _source_to_dict(source: SourceDescriptor) -> dict[str, Any]:
    return {
        "name": source.name,
        "url": source.url,
        "format": source.format.value,
        "params": dict(source.params),
    }


@dataclass
class ConfigProfile:
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    season_id: Optional[str] = None
    sources: Dict[str, List[dict]] = field(default_factory=dict)
    enrichment_source: Optional[dict] = None
    enrichment_columns: Dict[str, str] = field(default_factory=dict)
    news_keywords: List[str] = field(default_factory=list)
    leader_keys: Dict[str, List[str]] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "ConfigProfile":
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Unable to read config profile {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config profile {path} must contain a JSON object")
        return cls(
            team_id=data.get("team_id"),
            team_name=data.get("team_name"),
            season_id=data.get("season_id"),
            sources=data.get("sources", {}),
            enrichment_source=data.get("enrichment_source"),
            enrichment_columns=data.get("enrichment_columns", {}),
            news_keywords=data.get("news_keywords", []),
            leader_keys=data.get("leader_keys", {}),
            settings={key: data[key] for key in _SCALAR_FIELDS if key in data},
        )

    @classmethod
    def from_config(cls, config: FeedConfig) -> "ConfigProfile":
        return cls(
            team_id=config.team_id,
            team_name=config.team_name,
            season_id=config.season_id,
            sources={
                category.value: [_source_to_dict(source) for source in sources]
                for category, sources in config.sources.items()
            },
            enrichment_source=_source_to_dict(config.enrichment_source) if config.enrichment_source else None,
            enrichment_columns=dict(config.enrichment_columns),
            news_keywords=list(config.news_keywords),
            leader_keys={key: list(values) for key, values in config.leader_keys.items()},
            settings={key: getattr(config, key) for key in _SCALAR_FIELDS},
        )

    def save(self, path: Path) -> None:
        payload = {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "season_id": self.season_id,
            "sources": self.sources,
            "enrichment_source": self.enrichment_source,
            "enrichment_columns": self.enrichment_columns,
            "news_keywords": self.news_keywords,
            "leader_keys": self.leader_keys,
            **self.settings,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def apply(self, config: FeedConfig) -> FeedConfig:
        """Overlay this profile on ``config``."""

        if self.team_id or self.season_id or self.team_name:
            rebuilt = default_config(
                team_id=self.team_id or config.team_id,
                season_id=self.season_id or config.season_id,
                team_name=self.team_name or config.team_name,
            )
            config = replace(
                config,
                team_id=rebuilt.team_id,
                team_name=rebuilt.team_name,
                season_id=rebuilt.season_id,
                sources=rebuilt.sources,
            )

        if self.sources:
            merged = dict(config.sources)
            for key, entries in self.sources.items():
                try:
                    category = Category(key)
                except ValueError:
                    raise ConfigError(f"Unknown category {key!r} in sources") from None
                if not isinstance(entries, list):
                    raise ConfigError(f"sources.{key} must be a list")
                merged[category] = tuple(
                    _parse_source(entry, where=f"sources.{key}[{idx}]") for idx, entry in enumerate(entries)
                )
            config = replace(config, sources=MappingProxyType(merged))

        if self.enrichment_source:
            config = replace(
                config,
                enrichment_source=_parse_source(
                    {"format": "csv", "name": "enrichment", **self.enrichment_source},
                    where="enrichment_source",
                ),
            )
        if self.enrichment_columns:
            config = replace(config, enrichment_columns={**config.enrichment_columns, **self.enrichment_columns})
        if self.news_keywords:
            config = replace(config, news_keywords=tuple(str(word) for word in self.news_keywords))
        if self.leader_keys:
            config = replace(
                config,
                leader_keys=MappingProxyType({k: tuple(v) for k, v in self.leader_keys.items()}),
            )
        if self.settings:
            config = replace(config, **self.settings)
        return config
