"""
Runtime configuration from environment variables.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

DB_PATH_ENV = "LEAGUE_DB_PATH"
SEED_DEMO_ENV = "LEAGUE_SEED_DEMO"
LOG_LEVEL_ENV = "LEAGUE_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def env_db_path() -> Path | None:
    value = os.environ.get(DB_PATH_ENV, "").strip()
    return Path(value) if value else None


def seed_demo_enabled() -> bool:
    return os.environ.get(SEED_DEMO_ENV, "").strip().lower() in ("1", "true", "yes", "on")


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once; LEAGUE_LOG_LEVEL overrides the INFO default."""
    name = (level or os.environ.get(LOG_LEVEL_ENV, "INFO")).upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)
