"""Per-category normalizers mapping upstream payloads to canonical records.

Every normalizer returns ``None`` when the payload yields no usable data.
"""

from .news import normalize_news
from .roster import normalize_roster, position_code
from .schedule import normalize_schedule
from .standings import normalize_standings
from .stats import normalize_stats

__all__ = [
    "normalize_news",
    "normalize_roster",
    "normalize_schedule",
    "normalize_standings",
    "normalize_stats",
    "position_code",
]
