"""Aggregation pipeline: adapters, fallback combinator and orchestrator."""

from .adapters import Combine, SourceAdapter, build_adapters
from .aggregate import AggregateResult, CategoryResult, aggregate, with_fallback

__all__ = [
    "AggregateResult",
    "CategoryResult",
    "Combine",
    "SourceAdapter",
    "aggregate",
    "build_adapters",
    "with_fallback",
]
