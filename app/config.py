"""
app/config.py

Environment-driven settings for goals, ingestion, neighborhood targets
and logging. Every getter is cached; malformed values fall back to the
default with a warning.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", int, float)

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, value.strip().strip("\"'")


def load_env_files() -> None:
    """
    Load ``KEY=VALUE`` pairs from ``.env`` then ``.env.local`` at the project root.

    Variables already present in the process environment win.
    """

    for env_path in (PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"):
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _raw_env(name: str) -> str | None:
    """
    Return the trimmed value of *name*, or ``None`` when unset or blank.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _get_number_env(name: str, default: T, cast: Callable[[str], T]) -> T:
    """
    Parse *name* with *cast*; malformed values log a warning and use *default*.
    """

    raw_value = _raw_env(name)
    if raw_value is None:
        return default
    try:
        return cast(raw_value)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r; using %r", name, raw_value, default)
        return default


def _get_int_env(name: str, default: int) -> int:
    return _get_number_env(name, default, int)


def _get_float_env(name: str, default: float) -> float:
    return _get_number_env(name, default, float)


def _get_str_env(name: str, default: str) -> str:
    raw_value = _raw_env(name)
    return default if raw_value is None else raw_value


def _get_optional_str_env(name: str) -> str | None:
    return _raw_env(name)


@dataclass(frozen=True)
class GoalSettings:
    """
    Production goals used to judge agents and the team.

    ``target_visited`` is the per-agent visit goal for one cycle; the daily
    range and minimum efficiency drive the dashboard status colours.
    """

    target_visited: float = 1000
    daily_min: float = 20
    daily_max: float = 25
    efficiency_min: float = 80


@dataclass(frozen=True)
class FileIngestionSettings:
    """
    Runtime settings for spreadsheet ingestion.
    """

    max_upload_bytes: int = 25 * 1024 * 1024
    csv_encoding: str = "utf-8-sig"


@dataclass(frozen=True)
class NeighborhoodSettings:
    """
    Location of an optional JSON file replacing the built-in target table.
    """

    targets_path: str | None = None


@lru_cache(maxsize=1)
def get_goal_settings() -> GoalSettings:
    """
    Return cached default goals from environment variables.
    """

    return GoalSettings(
        target_visited=max(0.0, _get_float_env("GOAL_TARGET_VISITED", 1000)),
        daily_min=max(0.0, _get_float_env("GOAL_DAILY_MIN", 20)),
        daily_max=max(0.0, _get_float_env("GOAL_DAILY_MAX", 25)),
        efficiency_min=max(0.0, _get_float_env("GOAL_EFFICIENCY_MIN", 80)),
    )


@lru_cache(maxsize=1)
def get_file_ingestion_settings() -> FileIngestionSettings:
    """
    Return cached file ingestion settings from environment variables.
    """

    return FileIngestionSettings(
        max_upload_bytes=max(1, _get_int_env("INGEST_MAX_UPLOAD_BYTES", 25 * 1024 * 1024)),
        csv_encoding=_get_str_env("INGEST_CSV_ENCODING", "utf-8-sig"),
    )


@lru_cache(maxsize=1)
def get_neighborhood_settings() -> NeighborhoodSettings:
    """
    Return cached neighborhood reference settings.
    """

    return NeighborhoodSettings(
        targets_path=_get_optional_str_env("NEIGHBORHOOD_TARGETS_PATH"),
    )


def get_log_level() -> str:
    """
    Return the configured root log level name.
    """

    return _get_str_env("LOG_LEVEL", "INFO").upper()
