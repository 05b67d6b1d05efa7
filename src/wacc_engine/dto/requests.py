"""Request DTOs for API endpoints."""

from typing import Literal

from pydantic import BaseModel, Field

from wacc_engine.entities import BuildUpComponent, CostOfDebtMode, DebtComponent, InputSnapshot


class ComponentItem(BaseModel):
    """A named numeric input (build-up premium or cost of debt item)."""

    name: str = Field(..., description="Component label")
    value: float = Field(..., description="Percentage, or an amount for derived cost of debt")


class CalculateRequest(BaseModel):
    """Request DTO for a WACC calculation.

    Only types are checked here; range and consistency rules are enforced
    by the calculation engine so errors carry the offending field path.
    """

    build_up: list[ComponentItem] = Field(..., description="Cost of equity build-up components")
    cost_of_debt: list[ComponentItem] = Field(
        ...,
        description="Base rate, credit spread, total interest, total debt",
    )
    weight_of_debt: float = Field(..., description="Debt weight in percent")
    weight_of_equity: float = Field(..., description="Equity weight in percent")
    tax_rate: float = Field(..., description="Tax rate in percent")
    mode: Literal[1, 2] = Field(
        1,
        description="1 = sum of base rate and credit spread, 2 = interest / total debt",
    )

    def to_snapshot(self) -> InputSnapshot:
        """Convert to the immutable domain snapshot."""
        return InputSnapshot(
            build_up=tuple(BuildUpComponent(item.name, item.value) for item in self.build_up),
            cost_of_debt=tuple(DebtComponent(item.name, item.value) for item in self.cost_of_debt),
            weight_of_debt=self.weight_of_debt,
            weight_of_equity=self.weight_of_equity,
            tax_rate=self.tax_rate,
            mode=CostOfDebtMode(self.mode),
        )
