"""Pydantic models for API I/O."""

from .aggregate import AggregateResponse, HealthResponse

__all__ = [
    "AggregateResponse",
    "HealthResponse",
]
