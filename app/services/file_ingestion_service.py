"""
app/services/file_ingestion_service.py

Service layer for spreadsheet ingestion.

A CSV or Excel workbook (first sheet) is read into loosely-typed row
mappings with pandas, and every row is normalized into a
``FieldVisitRecord``. Ingestion is all-or-nothing: a file that cannot be
read as tabular data raises ``FileIngestionError`` and produces no partial
result. Malformed individual fields are never errors; they are absorbed by
the normalizer's defaults.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import PurePath
from typing import Any

import pandas as pd

from app.config import get_file_ingestion_settings
from app.domain.field_visit import IngestionResult
from app.logging_utils import log_event
from app.mappers.record_normalizer import RecordNormalizer

logger = logging.getLogger(__name__)

CSV_EXTENSIONS: frozenset[str] = frozenset({".csv"})
EXCEL_EXTENSIONS: frozenset[str] = frozenset({".xlsx", ".xlsm"})
SUPPORTED_EXTENSIONS: frozenset[str] = CSV_EXTENSIONS | EXCEL_EXTENSIONS


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FileIngestionError(ValueError):
    """
    Raised when an uploaded file cannot be read as tabular data.
    """


class UnsupportedFileTypeError(FileIngestionError):
    """
    Raised when the file extension is neither CSV nor a supported workbook.
    """


class FileTooLargeError(FileIngestionError):
    """
    Raised when the upload exceeds the configured size limit.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class FileIngestionService:
    """
    Coordinates file reading and row normalization.
    """

    def __init__(
        self,
        *,
        max_upload_bytes: int,
        csv_encoding: str = "utf-8-sig",
        normalizer: RecordNormalizer | None = None,
    ) -> None:
        self._max_upload_bytes = max(1, max_upload_bytes)
        self._csv_encoding = csv_encoding
        self._normalizer = normalizer or RecordNormalizer()

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def ingest(self, *, data: bytes, filename: str) -> IngestionResult:
        """
        Read *data* as the file named *filename* and normalize every row.

        Raises
        ------
        FileIngestionError
            When the file is too large, of an unsupported type, or unreadable.
        """

        extension = PurePath(filename or "").suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFileTypeError(
                f"Unsupported file type {extension or '(none)'!r}. "
                f"Allowed: {', '.join(sorted(SUPPORTED_EXTENSIONS))}."
            )
        if len(data) > self._max_upload_bytes:
            raise FileTooLargeError(
                f"File exceeds the upload limit of {self._max_upload_bytes} bytes."
            )

        log_event(logger, logging.INFO, "ingestion_started", filename=filename, size_bytes=len(data))
        try:
            rows = self._read_rows(data=data, extension=extension)
        except FileIngestionError:
            raise
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.WARNING,
                "ingestion_failed",
                filename=filename,
                error=type(exc).__name__,
                detail=str(exc),
            )
            raise FileIngestionError(f"Could not read {filename!r} as a spreadsheet: {exc}") from exc

        records = self._normalizer.normalize_many(rows)
        result = IngestionResult(
            records=records,
            source_name=filename,
            loaded_at=datetime.now(tz=timezone.utc),
        )
        log_event(logger, logging.INFO, "ingestion_finished", filename=filename, rows=result.rows_loaded)
        return result

    # ------------------------------------------------------------------
    # Ingestion internals
    # ------------------------------------------------------------------

    def _read_rows(self, *, data: bytes, extension: str) -> list[dict[str, Any]]:
        # Only blank cells count as missing; "N/A" and "NA" stay text.
        if extension in CSV_EXTENSIONS:
            frame = pd.read_csv(
                io.BytesIO(data),
                encoding=self._csv_encoding,
                sep=None,
                engine="python",
                keep_default_na=False,
                na_values=[""],
            )
        else:
            frame = pd.read_excel(
                io.BytesIO(data),
                sheet_name=0,
                engine="openpyxl",
                keep_default_na=False,
                na_values=[""],
            )
        return frame_to_rows(frame)


def frame_to_rows(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """
    Convert a DataFrame into row dicts with trimmed headers and ``None`` gaps.
    """

    frame = frame.rename(columns=lambda column: str(column).strip())
    cleaned = frame.astype(object).where(frame.notna(), None)
    return cleaned.to_dict(orient="records")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_file_ingestion_service() -> FileIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """
    settings = get_file_ingestion_settings()
    return FileIngestionService(
        max_upload_bytes=settings.max_upload_bytes,
        csv_encoding=settings.csv_encoding,
    )
