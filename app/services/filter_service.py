"""
app/services/filter_service.py

Record filtering and filter-option discovery for the dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from app.domain.field_visit import ALL, FieldVisitRecord, FilterState
from app.mappers.record_normalizer import MONTH_NAMES_PT

_NO_ISSUE_MARKERS: tuple[str, ...] = ("não houve", "sem pendência")


@dataclass(frozen=True)
class FilterOptions:
    """
    Selectable values for each filter, derived from the full working set.
    """

    supervisors: tuple[str, ...]
    agents: tuple[str, ...]
    cycles: tuple[str, ...]
    months: tuple[str, ...]
    years: tuple[str, ...]


def _is_unfiltered(value: str | None) -> bool:
    return value is None or value == "" or value == ALL


def matches(record: FieldVisitRecord, filters: FilterState) -> bool:
    """
    True when *record* satisfies every active selection in *filters*.
    """

    return (
        (_is_unfiltered(filters.supervisor) or record.supervisor == filters.supervisor)
        and (_is_unfiltered(filters.agent) or record.agent == filters.agent)
        and (_is_unfiltered(filters.cycle) or record.cycle == filters.cycle)
        and (_is_unfiltered(filters.month) or record.month == filters.month)
        and (_is_unfiltered(filters.year) or record.iso_date.startswith(str(filters.year)))
    )


def apply_filters(
    records: Iterable[FieldVisitRecord],
    filters: FilterState,
) -> tuple[FieldVisitRecord, ...]:
    return tuple(record for record in records if matches(record, filters))


def _unique_sorted(
    records: Sequence[FieldVisitRecord],
    key: Callable[[FieldVisitRecord], str],
) -> tuple[str, ...]:
    return tuple(sorted({key(record) for record in records if key(record)}))


def _month_weight(month: str) -> int:
    try:
        return MONTH_NAMES_PT.index(month)
    except ValueError:
        return len(MONTH_NAMES_PT)


def filter_options(records: Sequence[FieldVisitRecord]) -> FilterOptions:
    """
    Build filter choices: sorted names, calendar-ordered months, newest year first.
    """

    months = {record.month for record in records if record.month}
    return FilterOptions(
        supervisors=_unique_sorted(records, lambda r: r.supervisor),
        agents=_unique_sorted(records, lambda r: r.agent),
        cycles=_unique_sorted(records, lambda r: r.cycle),
        months=tuple(sorted(months, key=lambda m: (_month_weight(m), m))),
        years=tuple(sorted({r.year for r in records if r.year}, reverse=True)),
    )


def has_pending_issue(record: FieldVisitRecord) -> bool:
    """
    True when the row reports an actual occurrence in ``Pendencias``.
    """

    flag = record.issue_flag.strip()
    if not flag or flag == "0":
        return False
    lowered = flag.lower()
    return not any(marker in lowered for marker in _NO_ISSUE_MARKERS)


def pending_issues(records: Iterable[FieldVisitRecord]) -> tuple[FieldVisitRecord, ...]:
    return tuple(record for record in records if has_pending_issue(record))
