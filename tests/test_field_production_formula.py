from __future__ import annotations

import pytest

from kpi.field_production import (
    FieldProductionKPIFormula,
    coverage_pct,
    efficiency_pct,
    loss_pct,
    per_unit_average,
    round_half_up,
)


class TestFieldProductionKPIFormula:
    def test_calculate_keys(self) -> None:
        result = FieldProductionKPIFormula().calculate(
            {"visited": 90, "closed": 6, "refused": 4, "worked_days": 4}
        )
        assert result == {
            "efficiency_pct": pytest.approx(90.0),
            "loss_pct": pytest.approx(10.0),
            "daily_average": 22.5,
        }

    def test_zero_denominators(self) -> None:
        assert efficiency_pct(0, 0, 0) == 0.0
        assert loss_pct(0, 0, 0) == 0.0
        assert coverage_pct(50, 0) == 0.0
        assert per_unit_average(30, 0) == 30

    @pytest.mark.parametrize(
        "value, places, expected",
        [
            (2.5, 0, 3.0),
            (12.25, 1, 12.3),
            (12.24, 1, 12.2),
            (0.05, 1, 0.1),
        ],
    )
    def test_round_half_up(self, value: float, places: int, expected: float) -> None:
        assert round_half_up(value, places) == expected

    def test_missing_inputs_are_named(self) -> None:
        formula = FieldProductionKPIFormula()
        assert formula.missing_inputs({"visited": 1}) == ["closed", "refused", "worked_days"]
        with pytest.raises(ValueError, match="worked_days"):
            formula.calculate({"visited": 1, "closed": 0, "refused": 0})
