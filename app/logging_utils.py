"""
Structured logging helpers for ingestion and analytics workflows.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any


def configure_logging(level_name: str | None = None) -> None:
    """
    Configure root logging once for the process.
    """

    log_level = (level_name or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True, ensure_ascii=False))
