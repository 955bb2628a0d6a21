"""Canonical data models."""

from .records import (
    NOT_AVAILABLE,
    Category,
    Leader,
    NewsItem,
    RosterEntry,
    ScheduleEntry,
    SocialLink,
    StandingsRecord,
    StatValue,
    TeamStats,
)

__all__ = [
    "NOT_AVAILABLE",
    "Category",
    "Leader",
    "NewsItem",
    "RosterEntry",
    "ScheduleEntry",
    "SocialLink",
    "StandingsRecord",
    "StatValue",
    "TeamStats",
]
