"""
app/services/working_set.py

In-memory holder of the currently loaded production file.

Loading a file replaces the whole working set; there is no merge path.
A failed load leaves the previous records in place.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from functools import lru_cache

from app.domain.field_visit import FieldVisitRecord, IngestionResult
from app.logging_utils import log_event

logger = logging.getLogger(__name__)


class NoDataLoadedError(LookupError):
    """
    Raised when analytics are requested before any file has been loaded.
    """


class WorkingSet:
    """
    Current normalized records, swapped atomically on each successful load.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: IngestionResult | None = None

    def replace(self, result: IngestionResult) -> None:
        with self._lock:
            previous = self._current
            self._current = result
        log_event(
            logger,
            logging.INFO,
            "working_set_replaced",
            source=result.source_name,
            rows=result.rows_loaded,
            previous_source=previous.source_name if previous else None,
        )

    def clear(self) -> None:
        with self._lock:
            self._current = None

    @property
    def is_loaded(self) -> bool:
        return self._current is not None

    def current(self) -> IngestionResult:
        current = self._current
        if current is None:
            raise NoDataLoadedError("No production file has been loaded yet.")
        return current

    @property
    def records(self) -> tuple[FieldVisitRecord, ...]:
        return self.current().records

    @property
    def loaded_at(self) -> datetime | None:
        current = self._current
        return current.loaded_at if current else None


@lru_cache(maxsize=1)
def get_working_set() -> WorkingSet:
    """
    Process-wide working set used by the API.
    """

    return WorkingSet()
