"""
Storage Module - Lifetime statistics.

Games are never persisted. Only the aggregate stats and the
tutorial flag survive a restart.
"""

from .stats_store import (
    AggregateStats,
    InMemoryStatsStore,
    JsonFileStatsStore,
    StatsStore,
)

__all__ = [
    "AggregateStats",
    "InMemoryStatsStore",
    "JsonFileStatsStore",
    "StatsStore",
]
