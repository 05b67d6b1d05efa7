"""Service layer for business logic.

This layer contains the calculation engine, failure classification and the
recovery orchestrator. Services depend on protocols (interfaces), not
concrete implementations, making them testable and flexible.

Architecture:
    Handler -> RecoveryOrchestrator -> CalculationEngine -> ResultCache
    (HTTP)  -> (Boundary)           -> (Business)        -> (Memoization)

Usage:
    ```python
    from wacc_engine.repositories import InMemoryResultCache, TelemetryRecorder
    from wacc_engine.services import CalculationEngine, RecoveryOrchestrator

    cache = InMemoryResultCache.create()
    recorder = TelemetryRecorder.create()
    engine = CalculationEngine(cache=cache, telemetry=recorder)
    boundary = RecoveryOrchestrator.create(cache=cache, telemetry=recorder)

    result = await boundary.run(lambda: engine.calculate(snapshot))
    ```
"""

from .calculation_service import CalculationEngine, compute_wacc
from .failure_classifier import classify, describe, suggested_actions
from .performance_report import PerformanceReport, generate_report
from .recovery_service import RecoveryOrchestrator
from .validation import validate_snapshot

__all__ = [
    "CalculationEngine",
    "PerformanceReport",
    "RecoveryOrchestrator",
    "classify",
    "compute_wacc",
    "describe",
    "generate_report",
    "suggested_actions",
    "validate_snapshot",
]
