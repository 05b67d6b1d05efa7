"""WACC result domain entity."""

from dataclasses import dataclass
from enum import Enum


class CacheStatus(str, Enum):
    """How a calculation was served by the result cache."""

    HIT = "hit"
    MISS = "miss"
    SHARED = "shared"  # attached to another caller's in-flight computation


@dataclass(frozen=True)
class PerformanceRecord:
    """Timing and cache details for a single calculate call."""

    duration_ms: float
    cache_status: CacheStatus
    fingerprint: str

    @property
    def cache_hit(self) -> bool:
        """True unless this call ran the arithmetic itself."""
        return self.cache_status is not CacheStatus.MISS


@dataclass(frozen=True)
class CapitalStructureRow:
    """One row of the capital structure table (Equity, Debt or Total)."""

    component: str
    weight: float
    cost: float | None
    extended_value: float


@dataclass(frozen=True)
class WACCResult:
    """Computed WACC and its building blocks.

    All rates, weights and contributions are percentages. Results are shared
    between callers reading the same cache entry and are never mutated.

    Attributes:
        cost_of_equity: Sum of the build-up components
        cost_of_debt: Pre-tax cost of debt
        after_tax_cost_of_debt: cost_of_debt * (1 - tax_rate / 100)
        weight_of_debt: Debt weight used in the blend
        weight_of_equity: Equity weight used in the blend
        tax_rate: Tax rate applied to the cost of debt
        equity_contribution: weight_of_equity / 100 * cost_of_equity
        debt_contribution: weight_of_debt / 100 * after_tax_cost_of_debt
        wacc: equity_contribution + debt_contribution
        capital_structure: Equity, Debt and Total rows
        performance: Per-call timing and cache status
    """

    cost_of_equity: float
    cost_of_debt: float
    after_tax_cost_of_debt: float
    weight_of_debt: float
    weight_of_equity: float
    tax_rate: float
    equity_contribution: float
    debt_contribution: float
    wacc: float
    capital_structure: tuple[CapitalStructureRow, ...]
    performance: PerformanceRecord
