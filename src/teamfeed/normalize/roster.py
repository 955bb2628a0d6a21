"""Roster normalization for the league roster API."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from teamfeed.ingest.enrichment import EnrichmentIndex, lookup
from teamfeed.models import NOT_AVAILABLE, RosterEntry


logger = logging.getLogger(__name__)

ROLE_ALIASES = {
    "Attacking Midfielder": "Midfielder",
    "Defensive Midfielder": "Midfielder",
}

POSITION_CODES = {
    "Goalkeeper": "GK",
    "Defender": "DF",
    "Midfielder": "MF",
    "Forward": "FW",
}

ACTIVE_STATUS = "Active"


def canonical_role(label: str) -> str:
    text = label.strip()
    return ROLE_ALIASES.get(text, text)


def position_code(label: str) -> str:
    return POSITION_CODES.get(canonical_role(label), NOT_AVAILABLE)


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _player_to_entry(player: Mapping[str, Any], enrichment: Optional[EnrichmentIndex]) -> Optional[RosterEntry]:
    first = _text(player.get("mediaFirstName"))
    last = _text(player.get("mediaLastName"))
    role_label = player.get("roleLabel")
    if first is None or last is None or not isinstance(role_label, str):
        return None

    role = canonical_role(role_label)
    number = player.get("bibNumber")
    if not number:
        number = NOT_AVAILABLE
    nationality = _text(player.get("nationality")) or NOT_AVAILABLE

    headshot = page_url = None
    if enrichment:
        match = lookup(
            enrichment,
            (player.get("mediaJerseyName"), player.get("shortName"), last),
        )
        if match is not None:
            headshot, page_url = match.headshot, match.page_url

    return RosterEntry(
        name=f"{first} {last}",
        pos=position_code(role_label),
        num=number,
        bio=f"{role} from {nationality}",
        headshot=headshot,
        page_url=page_url,
    )


def normalize_roster(payload: Any, enrichment: Optional[EnrichmentIndex] = None) -> Optional[List[RosterEntry]]:
    """Map a roster payload to canonical entries, or ``None`` when nothing usable remains."""

    if not isinstance(payload, Mapping):
        return None
    players = payload.get("players")
    if not isinstance(players, list):
        return None

    roster: List[RosterEntry] = []
    for idx, player in enumerate(players):
        if not isinstance(player, Mapping) or player.get("playerStatus") != ACTIVE_STATUS:
            continue
        try:
            entry = _player_to_entry(player, enrichment)
        except (TypeError, ValueError) as exc:
            logger.debug("Skipping roster entry %s: %s", idx, exc)
            continue
        if entry is None:
            logger.debug("Skipping roster entry %s: missing name or role", idx)
            continue
        roster.append(entry)
    return roster or None
