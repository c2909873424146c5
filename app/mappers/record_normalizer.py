"""
app/mappers/record_normalizer.py

Raw spreadsheet row to ``FieldVisitRecord`` conversion.

Normalization is total: a malformed or missing field degrades to a safe
default and never raises. Row-level anomalies are absorbed here and are not
reported individually.

Date resolution (first match wins)
----------------------------------
1. ``date`` / ``datetime`` cell values are used as-is (offset-aware
   timestamps are converted to UTC first).
2. Numbers are spreadsheet day serials (serial 1 = 1899-12-31).
3. ``D[D]/M[M]/YYYY`` or ``D[D]-M[M]-YYYY`` text is read day-first.
4. Anything else goes through ISO parsing and a short list of formats.
5. Failure leaves ``iso_date`` empty and ``month`` as ``"Indefinido"``.
"""

from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Final, Mapping

from app.domain.field_visit import (
    DEPOSIT_TYPES,
    NO_ISSUE,
    PROPERTY_TYPES,
    UNDEFINED_MONTH,
    UNSPECIFIED,
    FieldVisitRecord,
)

SPREADSHEET_EPOCH: Final[datetime] = datetime(1899, 12, 30)
"""Day zero of the spreadsheet serial calendar, so serial 1 is 1899-12-31."""

_HALF_DAY: Final[timedelta] = timedelta(hours=12)

MONTH_NAMES_PT: Final[tuple[str, ...]] = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)

_DAY_FIRST_PATTERN = re.compile(r"(\d{1,2})[/-](\d{1,2})[/-](\d{4})")
_ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

DATE_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d.%m.%Y",
    "%Y%m%d",
)

NUMERIC_COLUMNS: Final[dict[str, str]] = {
    "visited": "Total_T",
    "closed": "Fechado",
    "refused": "Recusa",
    "rescued": "Resgate",
    "treated": "Im_Trat",
    "deposits_eliminated": "Dep_Elim",
    "larvicide_grams": "Larvicida",
}

TEXT_COLUMNS: Final[dict[str, str]] = {
    "supervisor": "Supervisor",
    "agent": "Agente",
    "cycle": "Ciclo",
    "neighborhood": "Bairro",
    "activity": "Atividade",
}

DATE_COLUMN: Final[str] = "Data"
ISSUE_FLAG_COLUMN: Final[str] = "Pendencias"
ISSUE_NOTE_COLUMN: Final[str] = "Observacao"


def coerce_number(value: Any) -> float:
    """
    Coerce a loosely-typed cell into a finite, non-negative number.

    ``None``, blanks, non-numeric text, NaN and infinities become ``0``.
    Integral values come back as ``int`` so counts stay whole.
    """

    if _is_missing(value):
        return 0
    if isinstance(value, bool):
        return int(value)

    if isinstance(value, numbers.Real):
        try:
            number = float(value)
        except OverflowError:
            return 0
    else:
        raw = str(value).strip()
        if not raw:
            return 0
        try:
            number = float(Decimal(raw))
        except (InvalidOperation, ValueError, OverflowError):
            return 0

    if not math.isfinite(number) or number <= 0:
        return 0
    return int(number) if number.is_integer() else number


def coerce_text(value: Any, default: str = UNSPECIFIED) -> str:
    """
    Return the trimmed text of a cell, or *default* when it is blank.
    """

    if _is_missing(value):
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text if text else default


def resolve_date(value: Any) -> date | None:
    """
    Resolve a raw ``Data`` cell into a calendar date, or ``None``.
    """

    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _calendar_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real):
        try:
            return _from_serial(float(value))
        except OverflowError:
            return None

    raw = str(value).strip()
    if not raw:
        return None

    day_first = _DAY_FIRST_PATTERN.fullmatch(raw)
    if day_first is not None:
        day, month, year = (int(part) for part in day_first.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    return _parse_generic(raw)


def month_name(resolved: date | None) -> str:
    """
    Portuguese full month name for *resolved*, capitalized.
    """

    if resolved is None:
        return UNDEFINED_MONTH
    return MONTH_NAMES_PT[resolved.month - 1]


def normalize(row: Mapping[str, Any]) -> FieldVisitRecord:
    """
    Convert one raw row into a ``FieldVisitRecord``. Never raises.
    """

    resolved = resolve_date(row.get(DATE_COLUMN))

    text_values = {
        attribute: coerce_text(row.get(column))
        for attribute, column in TEXT_COLUMNS.items()
    }
    numeric_values = {
        attribute: coerce_number(row.get(column))
        for attribute, column in NUMERIC_COLUMNS.items()
    }

    return FieldVisitRecord(
        **text_values,
        **numeric_values,
        iso_date=resolved.isoformat() if resolved is not None else "",
        month=month_name(resolved),
        deposits={code: coerce_number(row.get(code)) for code in DEPOSIT_TYPES},
        properties={code: coerce_number(row.get(code)) for code in PROPERTY_TYPES},
        issue_flag=coerce_text(row.get(ISSUE_FLAG_COLUMN), default=NO_ISSUE),
        issue_note=coerce_text(row.get(ISSUE_NOTE_COLUMN), default=""),
    )


class RecordNormalizer:
    """
    Stateless row normalizer; a seam for ingestion services and tests.
    """

    def normalize(self, row: Mapping[str, Any]) -> FieldVisitRecord:
        return normalize(row)

    def normalize_many(self, rows: list[Mapping[str, Any]]) -> tuple[FieldVisitRecord, ...]:
        return tuple(normalize(row) for row in rows)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    # NaN and NaT are the only values not equal to themselves; pd.NA refuses
    # to be truth-tested at all.
    try:
        return bool(value != value)
    except (TypeError, ValueError, ArithmeticError):
        return True


def _calendar_date(value: datetime) -> date:
    # Offset-aware timestamps are dated in UTC.
    if value.tzinfo is None or value.utcoffset() is None:
        return value.date()
    try:
        return value.astimezone(timezone.utc).date()
    except OverflowError:
        return value.date()


def _from_serial(serial: float) -> date | None:
    if not math.isfinite(serial):
        return None
    try:
        return (SPREADSHEET_EPOCH + timedelta(days=serial) + _HALF_DAY).date()
    except OverflowError:
        return None


def _parse_generic(raw: str) -> date | None:
    candidate = raw
    if _ISO_DATE_PATTERN.fullmatch(raw):
        candidate = f"{raw}T12:00:00"
    elif raw.endswith("Z"):
        candidate = raw[:-1] + "+00:00"

    try:
        return _calendar_date(datetime.fromisoformat(candidate))
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None
