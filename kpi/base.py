"""
kpi/base.py

Base class for production KPI formulas.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping


class BaseKPIFormula(ABC):
    """
    Contract for pure KPI formulas over pre-aggregated counters.

    Subclasses list the keys they read in ``required_inputs`` and implement
    :meth:`calculate`. Formulas must not perform I/O or keep state between
    calls.
    """

    required_inputs: tuple[str, ...] = ()

    def missing_inputs(self, inputs: Mapping[str, Any]) -> list[str]:
        return [key for key in self.required_inputs if key not in inputs]

    def check_inputs(self, inputs: Mapping[str, Any]) -> None:
        """
        Raise ValueError naming every required key absent from *inputs*.
        """

        missing = self.missing_inputs(inputs)
        if missing:
            raise ValueError(
                f"{type(self).__name__} is missing inputs: {', '.join(missing)}"
            )

    @abstractmethod
    def calculate(self, inputs: dict[str, Any]) -> dict[str, Any]:
        """
        Return computed metrics keyed by metric name.
        """
