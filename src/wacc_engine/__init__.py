"""WACC Engine - Weighted average cost of capital with caching and recovery.

This package provides a layered architecture for WACC calculations:

Layers:
    - protocols: Interface contracts (ResultCache, TelemetrySink)
    - repositories: Process-local shared state (result cache, telemetry buffer)
    - services: Business logic (calculation, classification, recovery, reporting)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from wacc_engine import CalculationEngine, InMemoryResultCache, InputSnapshot, TelemetryRecorder

    engine = CalculationEngine(
        cache=InMemoryResultCache.create(),
        telemetry=TelemetryRecorder.create(),
    )
    result = await engine.calculate(InputSnapshot.sample())
    print(result.wacc)
    ```

For HTTP API:
    ```python
    from wacc_engine.api.app import app
    ```
"""

from wacc_engine.config import settings
from wacc_engine.dto import CalculateRequest, CalculateResponse
from wacc_engine.entities import (
    BoundaryState,
    BuildUpComponent,
    CostOfDebtMode,
    DebtComponent,
    FailureCategory,
    InputSnapshot,
    MetricEvent,
    WACCResult,
)
from wacc_engine.errors import (
    CacheFailure,
    CalculationError,
    FaultedBoundaryError,
    HostIntegrationFailure,
    InvalidInputError,
    TelemetryFailure,
    WACCError,
)
from wacc_engine.handlers import WACCHandler
from wacc_engine.protocols import ResultCache, TelemetrySink
from wacc_engine.repositories import InMemoryResultCache, TelemetryRecorder
from wacc_engine.services import CalculationEngine, RecoveryOrchestrator, generate_report

__all__ = [
    # Configuration
    "settings",
    # Protocols (interfaces)
    "ResultCache",
    "TelemetrySink",
    # Services (business logic)
    "CalculationEngine",
    "RecoveryOrchestrator",
    "generate_report",
    # Handlers (HTTP)
    "WACCHandler",
    # Repositories (shared state)
    "InMemoryResultCache",
    "TelemetryRecorder",
    # Entities (domain models)
    "BoundaryState",
    "BuildUpComponent",
    "CostOfDebtMode",
    "DebtComponent",
    "FailureCategory",
    "InputSnapshot",
    "MetricEvent",
    "WACCResult",
    # Errors
    "WACCError",
    "CalculationError",
    "InvalidInputError",
    "CacheFailure",
    "TelemetryFailure",
    "HostIntegrationFailure",
    "FaultedBoundaryError",
    # DTOs (API contracts)
    "CalculateRequest",
    "CalculateResponse",
]
