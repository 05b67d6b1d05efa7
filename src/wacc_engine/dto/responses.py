"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from wacc_engine.entities import MetricEvent, WACCResult


class CapitalStructureItem(BaseModel):
    """Single row of the capital structure table."""

    component: str = Field(..., description="Equity, Debt or Total")
    weight: float = Field(..., description="Weight in percent")
    cost: float | None = Field(None, description="Cost in percent (after tax for debt)")
    extended_value: float = Field(..., description="Contribution to WACC in percent")


class CalculateResponse(BaseModel):
    """Response DTO for a WACC calculation."""

    wacc: float = Field(..., description="Weighted average cost of capital in percent")
    cost_of_equity: float = Field(..., description="Cost of equity in percent")
    cost_of_debt: float = Field(..., description="Pre-tax cost of debt in percent")
    after_tax_cost_of_debt: float = Field(..., description="After-tax cost of debt in percent")
    weight_of_debt: float
    weight_of_equity: float
    tax_rate: float
    equity_contribution: float
    debt_contribution: float
    capital_structure: list[CapitalStructureItem] = Field(default_factory=list)
    calculation_time_ms: float = Field(..., description="Wall-clock time of this call", ge=0.0)
    cache_status: str = Field(..., description="hit, miss or shared")
    fingerprint: str = Field(..., description="Cache key of the inputs")

    @classmethod
    def from_result(cls, result: WACCResult) -> "CalculateResponse":
        """Build the response from a domain result."""
        return cls(
            wacc=result.wacc,
            cost_of_equity=result.cost_of_equity,
            cost_of_debt=result.cost_of_debt,
            after_tax_cost_of_debt=result.after_tax_cost_of_debt,
            weight_of_debt=result.weight_of_debt,
            weight_of_equity=result.weight_of_equity,
            tax_rate=result.tax_rate,
            equity_contribution=result.equity_contribution,
            debt_contribution=result.debt_contribution,
            capital_structure=[
                CapitalStructureItem(
                    component=row.component,
                    weight=row.weight,
                    cost=row.cost,
                    extended_value=row.extended_value,
                )
                for row in result.capital_structure
            ],
            calculation_time_ms=result.performance.duration_ms,
            cache_status=result.performance.cache_status.value,
            fingerprint=result.performance.fingerprint,
        )


class MetricItem(BaseModel):
    """Single metric event."""

    name: str
    value: float
    timestamp: float = Field(..., description="Unix timestamp")
    metadata: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_event(cls, event: MetricEvent) -> "MetricItem":
        """Build the DTO from a domain event."""
        return cls(**event.to_dict())


class MetricsResponse(BaseModel):
    """Response DTO for the metrics snapshot."""

    monitoring: bool = Field(..., description="Whether telemetry is collecting")
    count: int = Field(..., ge=0)
    metrics: list[MetricItem] = Field(default_factory=list)


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    entry_count: int = Field(..., ge=0)
    pending_count: int = Field(..., ge=0)
    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    shared: int = Field(..., ge=0)
    evictions: int = Field(..., ge=0)
    expirations: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0.0, le=1.0)
    ttl_seconds: float = Field(..., gt=0)
    max_entries: int = Field(..., ge=1)


class FailureDetail(BaseModel):
    """Classified failure shown to the user."""

    category: str
    title: str
    description: str
    error: str
    attempts: int = Field(..., ge=0)
    remediation_actions: list[str] = Field(default_factory=list)
    suggested_actions: list[str] = Field(default_factory=list)
    occurred_at: float


class RecoveryStatusResponse(BaseModel):
    """Response DTO for the state of a protected boundary."""

    name: str
    state: str = Field(..., description="stable, faulted, recovering or faulted-terminal")
    retry_attempts: int = Field(..., ge=0)
    max_retry_attempts: int = Field(..., ge=1)
    auto_recovery: bool
    can_retry: bool
    failure: FailureDetail | None = None
    remediation_history: list[str] = Field(default_factory=list)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'degraded'")
    boundary_state: str = Field(..., description="State of the calculation boundary")
    monitoring: bool = Field(..., description="Whether telemetry is collecting")
