"""Canonical records shared across normalizers, fallbacks and the API."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer, model_validator
from pydantic.config import ConfigDict


class Category(str, Enum):
    """Closed set of data categories served by the aggregator."""

    ROSTER = "roster"
    SCHEDULE = "schedule"
    STATS = "stats"
    STANDINGS = "standings"
    NEWS = "news"


NOT_AVAILABLE = "N/A"


class RosterEntry(BaseModel):
    """One active player."""

    name: str = Field(..., min_length=1)
    pos: str
    num: Union[int, str]
    bio: str
    headshot: str | None = None
    page_url: str | None = Field(default=None, alias="pageUrl")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ScheduleEntry(BaseModel):
    opponent: str
    date: str
    location: str
    broadcast: str
    home: bool

    model_config = ConfigDict(frozen=True)


class StatValue(BaseModel):
    label: str
    value: Union[float, int, str]

    model_config = ConfigDict(frozen=True)


class Leader(BaseModel):
    name: str
    total: Union[float, int]

    model_config = ConfigDict(frozen=True)


LEADERS_KEY = "leaders"


class TeamStats(BaseModel):
    """Team-level stat map plus ranked player leader lists.

    On the wire the team stats sit at the top level keyed by stat id, e.g.
    ``{"goals-scored": {"label": ..., "value": ...}, "leaders": {...}}``;
    ``leaders`` is reserved for the ranked player lists.
    """

    team: Dict[str, StatValue] = Field(default_factory=dict)
    leaders: Dict[str, List[Leader]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _split_flat_map(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "team" not in data:
            team = {key: value for key, value in data.items() if key != LEADERS_KEY}
            return {"team": team, "leaders": data.get(LEADERS_KEY) or {}}
        return data

    @model_serializer(mode="wrap")
    def _flatten(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        data = handler(self)
        return {**data["team"], LEADERS_KEY: data["leaders"]}

    def is_empty(self) -> bool:
        return not self.team and not self.leaders


class StandingsRecord(BaseModel):
    rank: Union[int, float, str]
    points: Union[int, float, str]
    record: str

    model_config = ConfigDict(frozen=True)


class NewsItem(BaseModel):
    source: str
    date: str
    title: str
    snippet: str
    url: str

    model_config = ConfigDict(frozen=True)


class SocialLink(BaseModel):
    platform: str
    handle: str
    url: str

    model_config = ConfigDict(frozen=True)
