"""
app/mappers/neighborhood_reconciler.py

Maps free-text ``Bairro`` labels onto the neighborhood reference table.

Matching is exact after trimming and case-folding. There is no typo
tolerance: a misspelled label becomes its own zero-target neighborhood.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Final, Mapping

from app.config import get_neighborhood_settings
from app.domain.field_visit import UNSPECIFIED, NeighborhoodMatch
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

# Property counts per neighborhood for one work cycle.
DEFAULT_NEIGHBORHOOD_TARGETS: Final[dict[str, int]] = {
    "Centro": 2850,
    "Aeroporto": 1120,
    "Alto Alegre": 1640,
    "Alto da Boa Vista": 980,
    "Bairro Novo": 1530,
    "Bela Vista": 2210,
    "Boa Esperança": 1375,
    "Bom Jardim": 1890,
    "Cidade Alta": 1460,
    "Cidade Nova": 2675,
    "Conjunto Habitacional": 1210,
    "Cruzeiro": 860,
    "Distrito Industrial": 420,
    "Esplanada": 1045,
    "Estação": 760,
    "Floresta": 1330,
    "Industrial": 690,
    "Ipiranga": 1575,
    "Jardim Alvorada": 1180,
    "Jardim América": 1720,
    "Jardim Brasil": 1265,
    "Jardim das Flores": 940,
    "Jardim Europa": 1085,
    "Jardim Primavera": 1410,
    "Jardim Santa Rita": 870,
    "Lagoa Seca": 1150,
    "Liberdade": 1960,
    "Monte Castelo": 1310,
    "Morada do Sol": 1240,
    "Nossa Senhora Aparecida": 1505,
    "Nova Esperança": 1685,
    "Novo Horizonte": 2030,
    "Parque das Árvores": 795,
    "Parque Industrial": 540,
    "Planalto": 1820,
    "Ponte Nova": 905,
    "Recanto Verde": 730,
    "Santa Cruz": 1590,
    "Santa Luzia": 1355,
    "Santa Maria": 1475,
    "Santo Antônio": 2140,
    "São Cristóvão": 1265,
    "São Francisco": 1395,
    "São José": 2310,
    "São Pedro": 1135,
    "Vila Nova": 1760,
    "Vila Operária": 1220,
    "Vila Rica": 845,
    "Vista Alegre": 1090,
    "Zona Rural": 610,
}


def fold_label(label: str) -> str:
    """
    Normalize a neighborhood label for case-insensitive comparison.
    """

    return label.strip().casefold()


class NeighborhoodReconciler:
    """
    Resolves neighborhood labels against a fixed ``{name: target}`` table.
    """

    def __init__(self, targets: Mapping[str, int] | None = None) -> None:
        self._targets: dict[str, int] = dict(
            DEFAULT_NEIGHBORHOOD_TARGETS if targets is None else targets
        )
        self._lookup: dict[str, str] = {fold_label(name): name for name in self._targets}

    @property
    def targets(self) -> dict[str, int]:
        return dict(self._targets)

    def reconcile(self, label: str) -> NeighborhoodMatch | None:
        """
        Return the canonical entry for *label*.

        A reference match yields the table's exact casing and target; any
        other label is kept verbatim (trimmed) with target ``0``. Blank and
        ``"N/A"`` labels yield ``None`` and are not accumulated.
        """

        stripped = label.strip()
        if not stripped or stripped == UNSPECIFIED:
            return None

        canonical = self._lookup.get(fold_label(stripped))
        if canonical is None:
            return NeighborhoodMatch(canonical_name=stripped, target=0)
        return NeighborhoodMatch(canonical_name=canonical, target=self._targets[canonical])


def reconcile(label: str, targets: Mapping[str, int]) -> NeighborhoodMatch | None:
    """
    Functional form of :meth:`NeighborhoodReconciler.reconcile`.
    """

    return NeighborhoodReconciler(targets).reconcile(label)


def load_neighborhood_targets(path: str | Path) -> dict[str, int]:
    """
    Load a ``{name: target}`` JSON object from *path*.

    Raises ValueError when the file is not a JSON object of numeric targets.
    """

    with Path(path).open("r", encoding="utf-8") as fp:
        loaded = json.load(fp)
    if not isinstance(loaded, dict):
        raise ValueError(f"Neighborhood targets file must hold a JSON object: {path}")

    targets: dict[str, int] = {}
    for name, target in loaded.items():
        if isinstance(target, bool) or not isinstance(target, (int, float)):
            raise ValueError(f"Target for neighborhood {name!r} must be a number.")
        targets[str(name).strip()] = max(0, int(target))
    return targets


@lru_cache(maxsize=1)
def get_neighborhood_targets() -> dict[str, int]:
    """
    Return the active reference table (configured file or built-in default).
    """

    settings = get_neighborhood_settings()
    if settings.targets_path is None:
        return dict(DEFAULT_NEIGHBORHOOD_TARGETS)

    targets = load_neighborhood_targets(settings.targets_path)
    log_event(
        logger,
        logging.INFO,
        "neighborhood_targets_loaded",
        path=settings.targets_path,
        neighborhoods=len(targets),
    )
    return targets
