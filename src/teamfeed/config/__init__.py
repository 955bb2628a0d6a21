"""Configuration helpers for team and source settings."""

from .settings import (
    FeedConfig,
    SourceDescriptor,
    SourceFormat,
    apply_env_overrides,
    default_config,
    load_config,
)

__all__ = [
    "FeedConfig",
    "SourceDescriptor",
    "SourceFormat",
    "apply_env_overrides",
    "default_config",
    "load_config",
]
