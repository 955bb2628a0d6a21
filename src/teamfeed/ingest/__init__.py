"""Input adapters that retrieve and decode upstream sources."""

from .enrichment import (
    EMPTY_INDEX,
    EnrichmentEntry,
    EnrichmentIndex,
    build_index,
    load_enrichment_index,
    lookup,
    name_key,
)
from .fetch import FetchError, RetryableFetchError, SourceFetcher

__all__ = [
    "EMPTY_INDEX",
    "EnrichmentEntry",
    "EnrichmentIndex",
    "FetchError",
    "RetryableFetchError",
    "SourceFetcher",
    "build_index",
    "load_enrichment_index",
    "lookup",
    "name_key",
]
