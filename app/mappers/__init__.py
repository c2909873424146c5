"""
app/mappers package marker.
"""

from app.mappers.neighborhood_reconciler import (
    DEFAULT_NEIGHBORHOOD_TARGETS,
    NeighborhoodReconciler,
    get_neighborhood_targets,
    load_neighborhood_targets,
)
from app.mappers.record_normalizer import RecordNormalizer, coerce_number, resolve_date

__all__ = [
    "DEFAULT_NEIGHBORHOOD_TARGETS",
    "NeighborhoodReconciler",
    "RecordNormalizer",
    "coerce_number",
    "get_neighborhood_targets",
    "load_neighborhood_targets",
    "resolve_date",
]
