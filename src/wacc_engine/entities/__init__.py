"""Domain entities for internal representation.

These are pure dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package for that.

Entities should have:
- No JSON serialization logic beyond plain ``to_dict`` helpers
- No Pydantic validation
- No external dependencies
"""

from .cache_entry import CacheEntry
from .failure_record import BoundaryState, FailureCategory, FailureRecord
from .input_snapshot import (
    COST_OF_DEBT_ARITY,
    BuildUpComponent,
    CostOfDebtMode,
    DebtComponent,
    InputSnapshot,
)
from .metric_event import MetricEvent
from .wacc_result import CacheStatus, CapitalStructureRow, PerformanceRecord, WACCResult

__all__ = [
    "BoundaryState",
    "BuildUpComponent",
    "COST_OF_DEBT_ARITY",
    "CacheEntry",
    "CacheStatus",
    "CapitalStructureRow",
    "CostOfDebtMode",
    "DebtComponent",
    "FailureCategory",
    "FailureRecord",
    "InputSnapshot",
    "MetricEvent",
    "PerformanceRecord",
    "WACCResult",
]
