"""Input snapshot domain entity."""

from dataclasses import dataclass
from enum import Enum


class CostOfDebtMode(Enum):
    """Strategy used to derive the pre-tax cost of debt.

    DIRECT sums the base rate and credit spread components (indices 0 and 1).
    DERIVED divides interest expense (index 2) by total debt (index 3).
    """

    DIRECT = 1
    DERIVED = 2


# Both strategies read from the same four-slot component list
COST_OF_DEBT_ARITY: dict[CostOfDebtMode, int] = {
    CostOfDebtMode.DIRECT: 4,
    CostOfDebtMode.DERIVED: 4,
}


@dataclass(frozen=True)
class BuildUpComponent:
    """A named premium in the build-up model, as a percentage."""

    name: str
    value: float


@dataclass(frozen=True)
class DebtComponent:
    """A named cost-of-debt input (rate in percent, or an amount)."""

    name: str
    value: float


@dataclass(frozen=True)
class InputSnapshot:
    """Immutable set of inputs for one WACC calculation.

    Construction does not validate; the calculation engine does, so that
    every problem is reported with the path of the offending field.

    Attributes:
        build_up: Cost of equity components (risk-free rate, premiums)
        cost_of_debt: Four cost of debt components
        weight_of_debt: Debt share of the capital structure, in percent
        weight_of_equity: Equity share of the capital structure, in percent
        tax_rate: Marginal tax rate, in percent
        mode: Cost of debt strategy
    """

    build_up: tuple[BuildUpComponent, ...]
    cost_of_debt: tuple[DebtComponent, ...]
    weight_of_debt: float
    weight_of_equity: float
    tax_rate: float
    mode: CostOfDebtMode = CostOfDebtMode.DIRECT

    def __post_init__(self) -> None:
        # Freeze caller-supplied lists so the snapshot cannot change under the cache
        object.__setattr__(self, "build_up", tuple(self.build_up))
        object.__setattr__(self, "cost_of_debt", tuple(self.cost_of_debt))
        object.__setattr__(self, "mode", CostOfDebtMode(self.mode))

    @property
    def input_size(self) -> int:
        """Total number of components in the snapshot."""
        return len(self.build_up) + len(self.cost_of_debt)

    @classmethod
    def sample(cls) -> "InputSnapshot":
        """Sample inputs matching the add-in's default template."""
        return cls(
            build_up=(
                BuildUpComponent("Risk-free Rate", 3.5),
                BuildUpComponent("Market Risk Premium", 6.0),
                BuildUpComponent("Beta Adjustment", 1.2),
                BuildUpComponent("Size Premium", 2.0),
                BuildUpComponent("Company-specific Risk", 1.0),
            ),
            cost_of_debt=(
                DebtComponent("Base Rate", 2.5),
                DebtComponent("Credit Spread", 1.5),
                DebtComponent("Total Interest", 400_000.0),
                DebtComponent("Total Debt", 10_000_000.0),
            ),
            weight_of_debt=40.0,
            weight_of_equity=60.0,
            tax_rate=25.0,
            mode=CostOfDebtMode.DIRECT,
        )
