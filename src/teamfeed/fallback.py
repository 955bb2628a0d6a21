"""Static snapshots served when a category cannot be fetched live."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from teamfeed.models import (
    NOT_AVAILABLE,
    Category,
    NewsItem,
    RosterEntry,
    ScheduleEntry,
    StandingsRecord,
    StatValue,
    TeamStats,
)


_ROSTER = (
    RosterEntry(name="Ann-Katrin Berger", pos="GK", num=30, bio="Goalkeeper from Germany"),
    RosterEntry(name="Emily Sonnett", pos="DF", num=6, bio="Defender from USA"),
    RosterEntry(name="Tierna Davidson", pos="DF", num=12, bio="Defender from USA"),
    RosterEntry(name="Rose Lavelle", pos="MF", num=16, bio="Midfielder from USA"),
    RosterEntry(name="Midge Purce", pos="FW", num=23, bio="Forward from USA"),
    RosterEntry(name="Esther González", pos="FW", num=9, bio="Forward from Spain"),
)

_SCHEDULE = (
    ScheduleEntry(
        opponent="NC Courage",
        date="2025-10-26T17:00:00",
        location="WakeMed Soccer Park",
        broadcast="NWSL+",
        home=False,
    ),
)

_STATS = TeamStats(
    team={
        "goals-scored": StatValue(label="Goals scored", value=NOT_AVAILABLE),
        "goals-conceded": StatValue(label="Goals conceded", value=NOT_AVAILABLE),
    },
)

_STANDINGS = StandingsRecord(rank=NOT_AVAILABLE, points=NOT_AVAILABLE, record=NOT_AVAILABLE)

_NEWS = (
    NewsItem(
        source="gothamfc.com",
        date="",
        title="Latest Gotham FC news",
        snippet="Live news is temporarily unavailable. Visit the club site for the latest updates.",
        url="https://www.gothamfc.com/news",
    ),
)

FALLBACK_SNAPSHOTS: Mapping[Category, Any] = MappingProxyType(
    {
        Category.ROSTER: _ROSTER,
        Category.SCHEDULE: _SCHEDULE,
        Category.STATS: _STATS,
        Category.STANDINGS: _STANDINGS,
        Category.NEWS: _NEWS,
    }
)


def resolve_fallback(category: Category) -> Any:
    """Return a fresh copy of the static snapshot for ``category``.

    List categories come back as a new list of frozen records, so callers may
    extend or reorder the result without touching the snapshot.
    """

    snapshot = FALLBACK_SNAPSHOTS[Category(category)]
    if isinstance(snapshot, tuple):
        return list(snapshot)
    return snapshot.model_copy(deep=True)
