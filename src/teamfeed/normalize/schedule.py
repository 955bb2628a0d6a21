"""Schedule normalization: filter a league match list to one team."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional

from teamfeed.models import ScheduleEntry


logger = logging.getLogger(__name__)

TBD = "TBD"

_BROADCAST_SLOT = re.compile(r"^broadcasterNational(\d+)$")


def is_team(side: Any, *, team_id: str | None, team_name: str | None) -> bool:
    """True when ``side`` identifies the configured team by id or display name."""

    if not isinstance(side, Mapping):
        return False
    if team_id and side.get("teamId") == team_id:
        return True
    return bool(team_name) and side.get("shortName") == team_name


def broadcast_label(editorial: Any) -> str:
    """Comma-join the network part of every populated national broadcaster slot."""

    if not isinstance(editorial, Mapping):
        return TBD
    broadcasters = editorial.get("broadcasters")
    if not isinstance(broadcasters, Mapping):
        return TBD
    slots = []
    for key, value in broadcasters.items():
        match = _BROADCAST_SLOT.match(str(key))
        if match and isinstance(value, str) and value.strip():
            slots.append((int(match.group(1)), value.split("|")[0].strip()))
    networks = [name for _, name in sorted(slots) if name]
    return ", ".join(networks) if networks else TBD


def _match_to_entry(match: Mapping[str, Any], *, team_id: str | None, team_name: str | None) -> Optional[ScheduleEntry]:
    home_side = match.get("home")
    away_side = match.get("away")
    if not isinstance(home_side, Mapping) or not isinstance(away_side, Mapping):
        return None
    is_home = is_team(home_side, team_id=team_id, team_name=team_name)
    if not is_home and not is_team(away_side, team_id=team_id, team_name=team_name):
        return None

    opponent = (away_side if is_home else home_side).get("shortName")
    kickoff = match.get("matchDateUtc")
    if not isinstance(opponent, str) or not opponent or not isinstance(kickoff, str) or not kickoff:
        raise ValueError("match is missing opponent or kickoff")
    location = match.get("stadiumName")
    return ScheduleEntry(
        opponent=opponent,
        date=kickoff,
        location=location if isinstance(location, str) and location else TBD,
        broadcast=broadcast_label(match.get("editorial")),
        home=is_home,
    )


def normalize_schedule(
    payload: Any,
    *,
    team_id: str | None = None,
    team_name: str | None = None,
) -> Optional[List[ScheduleEntry]]:
    """Return the configured team's matches in source order, or ``None``."""

    if not isinstance(payload, Mapping):
        return None
    matches = payload.get("matches")
    if not isinstance(matches, list):
        return None

    schedule: List[ScheduleEntry] = []
    for idx, match in enumerate(matches):
        if not isinstance(match, Mapping):
            continue
        try:
            entry = _match_to_entry(match, team_id=team_id, team_name=team_name)
        except (TypeError, ValueError) as exc:
            logger.debug("Skipping match %s: %s", idx, exc)
            continue
        if entry is not None:
            schedule.append(entry)
    return schedule or None
