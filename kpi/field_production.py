"""
kpi/field_production.py

Field production KPI formula implementation.

Expected inputs
---------------
visited : float
    Properties worked (Total_T) in the period.
closed : float
    Properties found closed.
refused : float
    Properties whose owner refused the visit.
worked_days : int
    Distinct worked days in the scope being averaged.

Formulas
--------
Efficiency %    = visited / (visited + closed + refused) * 100
Loss %          = (closed + refused) / (visited + closed + refused) * 100
Daily Average   = visited / max(1, worked_days)
Coverage %      = visited / target * 100

Unlike the revenue formulas, a zero denominator yields ``0`` rather than
``None``: an empty selection is reported as 0 %, never as "undefined".
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from kpi.base import BaseKPIFormula


class FieldProductionKPIFormula(BaseKPIFormula):
    """
    Deterministic field production KPI calculations.

    All arithmetic is self-contained.  No I/O, no logging, no side effects.
    """

    required_inputs = ("visited", "closed", "refused", "worked_days")

    def calculate(self, inputs: dict[str, Any]) -> dict[str, float]:
        """
        Compute efficiency, loss and daily average from *inputs*.

        Returns
        -------
        dict
            Keys: ``efficiency_pct``, ``loss_pct``, ``daily_average``.
        """
        self.check_inputs(inputs)
        visited: float = inputs["visited"]
        closed: float = inputs["closed"]
        refused: float = inputs["refused"]
        worked_days: int = inputs["worked_days"]

        return {
            "efficiency_pct": efficiency_pct(visited, closed, refused),
            "loss_pct": loss_pct(visited, closed, refused),
            "daily_average": round_half_up(per_unit_average(visited, worked_days), 1),
        }


# ---------------------------------------------------------------------------
# Pure formula functions
# ---------------------------------------------------------------------------


def total_attempts(visited: float, closed: float, refused: float) -> float:
    """Attempts = visited + closed + refused."""
    return visited + closed + refused


def efficiency_pct(visited: float, closed: float, refused: float) -> float:
    """
    Efficiency % = visited / attempts * 100.

    Returns 0.0 when there were no attempts.
    """
    attempts = total_attempts(visited, closed, refused)
    if attempts == 0:
        return 0.0
    return visited / attempts * 100


def loss_pct(visited: float, closed: float, refused: float) -> float:
    """
    Loss % = (closed + refused) / attempts * 100.

    Returns 0.0 when there were no attempts.
    """
    attempts = total_attempts(visited, closed, refused)
    if attempts == 0:
        return 0.0
    return (closed + refused) / attempts * 100


def per_unit_average(total: float, units: int) -> float:
    """Average = total / max(1, units)."""
    return total / max(1, units)


def coverage_pct(visited: float, target: float) -> float:
    """
    Coverage % = visited / target * 100.

    A neighborhood without a known target is always 0.0.
    """
    if target <= 0:
        return 0.0
    return visited / target * 100


def round_half_up(value: float, places: int) -> float:
    """
    Round *value* to *places* decimals, halves away from zero.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
