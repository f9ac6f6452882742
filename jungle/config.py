"""Runtime configuration, read once from the environment."""

from __future__ import annotations

import os
from pathlib import Path

JUNGLE_ENV = os.getenv("JUNGLE_ENV", "development")
JUNGLE_LOG_LEVEL = os.getenv("JUNGLE_LOG_LEVEL", "INFO")

# Persistent win/loss/capture counters
DEFAULT_STATS_FILE = Path.home() / ".jungle" / "stats.json"
STATS_FILE = Path(os.getenv("JUNGLE_STATS_FILE", str(DEFAULT_STATS_FILE)))

# Seconds the bot "thinks" before its turn fires
BOT_DELAY = float(os.getenv("JUNGLE_BOT_DELAY", "1.0"))

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def is_production() -> bool:
    return JUNGLE_ENV == "production"
