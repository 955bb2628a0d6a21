"""Player-name keyed enrichment lookup built from a spreadsheet export."""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from teamfeed.config import FeedConfig
from teamfeed.ingest.fetch import FetchError, SourceFetcher


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrichmentEntry:
    headshot: Optional[str] = None
    page_url: Optional[str] = None


EnrichmentIndex = Mapping[str, EnrichmentEntry]

EMPTY_INDEX: EnrichmentIndex = MappingProxyType({})


def name_key(name: object) -> str:
    """Normalize a person name for lookups.

    Diacritics are stripped, case is folded and whitespace is collapsed, so
    ``"  Esther  González "`` and ``"esther gonzalez"`` share a key.
    """

    if not isinstance(name, str):
        return ""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"\s+", " ", stripped.casefold()).strip()


def _cell(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def build_index(rows: Iterable[Mapping[str, str]], columns: Mapping[str, str]) -> EnrichmentIndex:
    """Build a frozen index from decoded CSV rows.

    ``columns`` maps ``name``/``headshot``/``page_url`` to sheet headers. Rows
    with a blank name, or with neither a headshot nor a page URL, are ignored;
    the first row wins for duplicate keys.
    """

    name_col = columns.get("name", "Name")
    headshot_col = columns.get("headshot", "Headshot")
    page_col = columns.get("page_url", "Page URL")
    index: dict[str, EnrichmentEntry] = {}
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        key = name_key(row.get(name_col))
        if not key:
            continue
        headshot = _cell(row.get(headshot_col))
        page_url = _cell(row.get(page_col))
        if headshot is None and page_url is None:
            continue
        index.setdefault(key, EnrichmentEntry(headshot=headshot, page_url=page_url))
    return MappingProxyType(index)


def lookup(index: EnrichmentIndex, candidates: Sequence[object]) -> Optional[EnrichmentEntry]:
    """Return the entry for the first candidate name that has a key in ``index``."""

    for candidate in candidates:
        key = name_key(candidate)
        if key and key in index:
            return index[key]
    return None


async def load_enrichment_index(fetcher: SourceFetcher, config: FeedConfig) -> EnrichmentIndex:
    """Fetch and index the enrichment sheet; any failure yields an empty index."""

    source = config.enrichment_source
    if source is None:
        return EMPTY_INDEX
    try:
        rows = await fetcher.fetch(source)
    except FetchError as exc:
        logger.warning("Enrichment source %s unavailable (%s); continuing without it", source.name, exc.reason)
        return EMPTY_INDEX
    if not isinstance(rows, list):
        logger.warning("Enrichment source %s did not decode to a list of rows; continuing without it", source.name)
        return EMPTY_INDEX
    try:
        index = build_index(rows, config.enrichment_columns)
    except (AttributeError, TypeError, ValueError) as exc:
        logger.warning("Enrichment source %s could not be indexed (%s); continuing without it", source.name, exc)
        return EMPTY_INDEX
    logger.info("Built enrichment index with %s players from %s", len(index), source.name)
    return index
