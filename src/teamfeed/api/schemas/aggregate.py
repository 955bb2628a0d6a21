from __future__ import annotations

from typing import List

from pydantic import BaseModel

from teamfeed.models import NewsItem, RosterEntry, ScheduleEntry, SocialLink, StandingsRecord, TeamStats


class AggregateResponse(BaseModel):
    """Combined payload; disabled categories are left unset and omitted."""

    roster: List[RosterEntry] | None = None
    schedule: List[ScheduleEntry] | None = None
    stats: TeamStats | None = None
    standings: StandingsRecord | None = None
    news: List[NewsItem] | None = None
    social: List[SocialLink] | None = None


class HealthResponse(BaseModel):
    status: str
