"""Season statistics normalization.

Each stats sub-source (general, standard, shooting, passing, defending,
goalkeeping, ...) may carry any of three shapes:

* ``team.stats``: a list of ``{statsId, statsLabel, statsValue}`` team totals;
* ``topPlayers``: ``{stat-key: {<player name fields>, value}}``, one leader per stat;
* ``players``: ``[{<player name fields>, stats: [{statsId, statsValue}]}]``,
  ranked into top-N leader lists for the stat keys configured for that sub-source.

Team totals from every sub-source are merged (first sub-source wins on
duplicate keys) and derived percentages are added when their denominator is
positive.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from teamfeed.models import Leader, StatValue, TeamStats


logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 3

DERIVED_PERCENTAGES: Tuple[Tuple[str, str, str, str], ...] = (
    ("penalty-kick-pct", "Penalty kick conversion %", "penalty-goals", "penalty-attempts"),
    ("passing-accuracy", "Passing accuracy %", "accurate-passes", "total-passes"),
    ("shot-accuracy", "Shot accuracy %", "shots-on-target", "total-shots"),
    ("save-pct", "Save %", "saves", "shots-on-target-conceded"),
)


def as_number(value: Any) -> Optional[float | int]:
    """Coerce ints, floats and numeric strings; anything else (bools, NaN) is ``None``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if isinstance(number, float):
        if math.isnan(number) or math.isinf(number):
            return None
        if number.is_integer():
            return int(number)
    return number


def player_name(player: Any) -> Optional[str]:
    if not isinstance(player, Mapping):
        return None
    first = player.get("mediaFirstName")
    last = player.get("mediaLastName")
    if isinstance(first, str) and isinstance(last, str) and first.strip() and last.strip():
        return f"{first.strip()} {last.strip()}"
    for key in ("name", "shortName", "mediaJerseyName"):
        value = player.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _team_stats(payload: Mapping[str, Any]) -> Dict[str, StatValue]:
    team = payload.get("team")
    if not isinstance(team, Mapping):
        return {}
    entries = team.get("stats")
    if not isinstance(entries, list):
        return {}
    result: Dict[str, StatValue] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        stat_id = entry.get("statsId")
        value = entry.get("statsValue")
        if not isinstance(stat_id, str) or not stat_id or value is None or isinstance(value, (dict, list)):
            continue
        label = entry.get("statsLabel")
        numeric = as_number(value)
        result.setdefault(
            stat_id,
            StatValue(
                label=label if isinstance(label, str) and label else stat_id,
                value=numeric if numeric is not None else str(value),
            ),
        )
    return result


def _top_players(payload: Mapping[str, Any]) -> Dict[str, List[Leader]]:
    top = payload.get("topPlayers")
    if not isinstance(top, Mapping):
        return {}
    leaders: Dict[str, List[Leader]] = {}
    for stat_key, player in top.items():
        name = player_name(player)
        total = as_number(player.get("value")) if isinstance(player, Mapping) else None
        if name is None or total is None:
            continue
        leaders[str(stat_key)] = [Leader(name=name, total=total)]
    return leaders


def _player_values(player: Mapping[str, Any]) -> Dict[str, float | int]:
    stats = player.get("stats")
    values: Dict[str, float | int] = {}
    if isinstance(stats, list):
        for entry in stats:
            if not isinstance(entry, Mapping) or not isinstance(entry.get("statsId"), str):
                continue
            number = as_number(entry.get("statsValue"))
            if number is not None:
                values.setdefault(entry["statsId"], number)
    elif isinstance(stats, Mapping):
        for key, raw in stats.items():
            number = as_number(raw)
            if number is not None:
                values[str(key)] = number
    return values


def rank_leaders(
    players: Sequence[Any],
    stat_keys: Sequence[str],
    *,
    top_n: int = DEFAULT_TOP_N,
) -> Dict[str, List[Leader]]:
    """Top-``top_n`` players per stat, descending; ties keep input order."""

    parsed: List[Tuple[str, Dict[str, float | int]]] = []
    for player in players:
        name = player_name(player)
        if name is None:
            continue
        parsed.append((name, _player_values(player)))

    leaders: Dict[str, List[Leader]] = {}
    for key in stat_keys:
        candidates = [(name, values[key]) for name, values in parsed if values.get(key, 0) > 0]
        ranked = sorted(candidates, key=lambda item: -item[1])[: max(0, top_n)]
        if ranked:
            leaders[key] = [Leader(name=name, total=total) for name, total in ranked]
    return leaders


def derive_percentages(team: Mapping[str, StatValue]) -> Dict[str, StatValue]:
    """Percentages whose numerator and denominator are present and the denominator is positive."""

    derived: Dict[str, StatValue] = {}
    for key, label, numerator_key, denominator_key in DERIVED_PERCENTAGES:
        if key in team or numerator_key not in team or denominator_key not in team:
            continue
        numerator = as_number(team[numerator_key].value)
        denominator = as_number(team[denominator_key].value)
        if numerator is None or denominator is None or denominator <= 0:
            continue
        derived[key] = StatValue(label=label, value=round(numerator / denominator * 100, 1))
    return derived


def normalize_stats(
    payloads: Any,
    *,
    leader_keys: Mapping[str, Sequence[str]] | None = None,
    top_n: int = DEFAULT_TOP_N,
) -> Optional[TeamStats]:
    """Merge stats sub-source payloads into one :class:`TeamStats`, or ``None`` if empty.

    ``payloads`` maps sub-source name to payload; a bare payload is accepted
    and treated as the ``general`` sub-source.
    """

    if isinstance(payloads, Mapping) and ("team" in payloads or "topPlayers" in payloads or "players" in payloads):
        payloads = {"general": payloads}
    if not isinstance(payloads, Mapping):
        return None
    leader_keys = leader_keys or {}

    team: Dict[str, StatValue] = {}
    leaders: Dict[str, List[Leader]] = {}
    for name, payload in payloads.items():
        if not isinstance(payload, Mapping):
            logger.debug("Ignoring stats sub-source %s: not an object", name)
            continue
        for key, value in _team_stats(payload).items():
            team.setdefault(key, value)
        for key, value in _top_players(payload).items():
            leaders.setdefault(key, value)
        players = payload.get("players")
        keys = leader_keys.get(name, ())
        if isinstance(players, list) and keys:
            for key, value in rank_leaders(players, keys, top_n=top_n).items():
                leaders.setdefault(key, value)

    team.update(derive_percentages(team))
    stats = TeamStats(team=team, leaders=leaders)
    return None if stats.is_empty() else stats
