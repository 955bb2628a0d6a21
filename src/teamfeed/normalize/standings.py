"""Standings normalization (all-or-nothing)."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from teamfeed.models import StandingsRecord
from teamfeed.normalize.schedule import is_team

TABLE_TYPE = "table"
REQUIRED_STATS = ("rank", "points", "win", "lose", "draw")


def _find(items: Any, predicate) -> Optional[Mapping[str, Any]]:
    if not isinstance(items, list):
        return None
    for item in items:
        if isinstance(item, Mapping) and predicate(item):
            return item
    return None


def normalize_standings(
    payload: Any,
    *,
    team_id: str | None = None,
    team_name: str | None = None,
) -> Optional[StandingsRecord]:
    """Locate the team's row in the overall table.

    Returns ``None`` if the table, the row or any of rank/points/wins/losses/draws
    is missing; a partial record is never produced.
    """

    if not isinstance(payload, Mapping):
        return None
    table = _find(payload.get("standings"), lambda item: item.get("type") == TABLE_TYPE)
    if table is None:
        return None
    row = _find(table.get("teams"), lambda item: is_team(item, team_id=team_id, team_name=team_name))
    if row is None or not isinstance(row.get("stats"), list):
        return None

    values = {}
    for stat_id in REQUIRED_STATS:
        entry = _find(row["stats"], lambda item, wanted=stat_id: item.get("statsId") == wanted)
        if entry is None or entry.get("statsValue") is None:
            return None
        values[stat_id] = entry["statsValue"]

    if any(isinstance(value, (dict, list, bool)) for value in values.values()):
        return None
    return StandingsRecord(
        rank=values["rank"],
        points=values["points"],
        record=f"{values['win']}-{values['lose']}-{values['draw']}",
    )
