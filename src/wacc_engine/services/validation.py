"""Input validation for WACC calculations.

Checks run in a fixed order and stop at the first problem, which is raised
as ``InvalidInputError`` carrying the offending field path.
"""

import math

from wacc_engine.config import settings
from wacc_engine.entities import COST_OF_DEBT_ARITY, CostOfDebtMode, InputSnapshot
from wacc_engine.errors import InvalidInputError

TOTAL_INTEREST_INDEX = 2
TOTAL_DEBT_INDEX = 3


def _check_number(path: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(path, f"must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise InvalidInputError(path, "must be finite")
    return float(value)


def _check_percentage(path: str, value: object) -> float:
    number = _check_number(path, value)
    if not 0 <= number <= 100:
        raise InvalidInputError(path, f"must be between 0 and 100, got {number}")
    return number


def validate_snapshot(snapshot: InputSnapshot, tolerance: float | None = None) -> None:
    """Validate a snapshot before any cache access or arithmetic.

    Args:
        snapshot: The inputs to check
        tolerance: Allowed deviation of the weight sum from 100. Defaults to settings.

    Raises:
        InvalidInputError: On the first violation found
    """
    tolerance = settings.weight_tolerance if tolerance is None else tolerance

    if not snapshot.build_up:
        raise InvalidInputError("build_up", "at least one build-up component is required")

    for index, item in enumerate(snapshot.build_up):
        if not isinstance(item.name, str) or not item.name.strip():
            raise InvalidInputError(f"build_up[{index}].name", "component name is required")
        value = _check_number(f"build_up[{index}].value", item.value)
        if value < 0:
            raise InvalidInputError(
                f"build_up[{index}].value",
                f"negative values are not allowed in the build-up model ({item.name})",
            )

    expected = COST_OF_DEBT_ARITY[snapshot.mode]
    if len(snapshot.cost_of_debt) != expected:
        raise InvalidInputError(
            "cost_of_debt",
            f"{snapshot.mode.name} mode requires exactly {expected} items, "
            f"got {len(snapshot.cost_of_debt)}",
        )

    for index, item in enumerate(snapshot.cost_of_debt):
        if not isinstance(item.name, str) or not item.name.strip():
            raise InvalidInputError(f"cost_of_debt[{index}].name", "item name is required")
        value = _check_number(f"cost_of_debt[{index}].value", item.value)
        if value < 0:
            raise InvalidInputError(f"cost_of_debt[{index}].value", "value must be non-negative")

    weight_of_debt = _check_percentage("weight_of_debt", snapshot.weight_of_debt)
    weight_of_equity = _check_percentage("weight_of_equity", snapshot.weight_of_equity)
    total = weight_of_debt + weight_of_equity
    if abs(total - 100) > tolerance:
        raise InvalidInputError(
            "weights",
            f"weight of debt and weight of equity must sum to 100%, current total: {total}%",
        )

    _check_percentage("tax_rate", snapshot.tax_rate)

    if snapshot.mode is CostOfDebtMode.DERIVED and snapshot.cost_of_debt[TOTAL_DEBT_INDEX].value == 0:
        raise InvalidInputError(
            f"cost_of_debt[{TOTAL_DEBT_INDEX}].value",
            "total debt must be greater than zero to derive the cost of debt",
        )

    _check_costs(snapshot)


def _sum(values) -> float:
    try:
        return math.fsum(values)
    except OverflowError:
        return math.inf


def _check_costs(snapshot: InputSnapshot) -> None:
    """Reject inputs whose costs or blended rate overflow to a non-finite number."""
    ke = _sum(item.value for item in snapshot.build_up)
    if not math.isfinite(ke):
        raise InvalidInputError("build_up", "cost of equity is too large to calculate")

    items = snapshot.cost_of_debt
    if snapshot.mode is CostOfDebtMode.DIRECT:
        path = "cost_of_debt"
        kd = _sum((items[0].value, items[1].value))
    else:
        path = f"cost_of_debt[{TOTAL_INTEREST_INDEX}].value"
        kd = items[TOTAL_INTEREST_INDEX].value / items[TOTAL_DEBT_INDEX].value * 100
    if not math.isfinite(kd):
        raise InvalidInputError(path, "cost of debt is too large to calculate")

    kd_after_tax = kd * (1 - snapshot.tax_rate / 100)
    wacc = snapshot.weight_of_equity / 100 * ke + snapshot.weight_of_debt / 100 * kd_after_tax
    if not math.isfinite(wacc):
        raise InvalidInputError("weights", "weighted cost of capital is too large to calculate")
