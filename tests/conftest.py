"""Shared fixtures for the WACC engine tests."""

import pytest

from wacc_engine.entities import BuildUpComponent, CostOfDebtMode, DebtComponent, InputSnapshot
from wacc_engine.repositories import InMemoryResultCache, TelemetryRecorder
from wacc_engine.services import CalculationEngine, RecoveryOrchestrator


class FakeClock:
    """Manually advanced clock for TTL and timestamp tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingRecorder(TelemetryRecorder):
    """Recorder whose every write raises."""

    def record_metric(self, event) -> None:
        raise RuntimeError("telemetry sink unavailable")

    def record(self, name, value, *, metadata=None, tags=()) -> None:
        raise RuntimeError("telemetry sink unavailable")


def make_snapshot(**overrides) -> InputSnapshot:
    """Snapshot with Ke 12.5%, Kd 4%, 40/60 weights and 25% tax (WACC 8.7%)."""
    fields = {
        "build_up": (
            BuildUpComponent("Risk-free Rate", 4.0),
            BuildUpComponent("Market Risk Premium", 6.0),
            BuildUpComponent("Size Premium", 2.5),
        ),
        "cost_of_debt": (
            DebtComponent("Base Rate", 2.5),
            DebtComponent("Credit Spread", 1.5),
            DebtComponent("Total Interest", 400_000.0),
            DebtComponent("Total Debt", 10_000_000.0),
        ),
        "weight_of_debt": 40.0,
        "weight_of_equity": 60.0,
        "tax_rate": 25.0,
        "mode": CostOfDebtMode.DIRECT,
    }
    fields.update(overrides)
    return InputSnapshot(**fields)


@pytest.fixture
def snapshot() -> InputSnapshot:
    """Snapshot whose WACC is 8.7%."""
    return make_snapshot()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache() -> InMemoryResultCache:
    return InMemoryResultCache(ttl=3600, max_entries=500)


@pytest.fixture
def recorder() -> TelemetryRecorder:
    """Recorder with monitoring already started."""
    return TelemetryRecorder.create(buffer_size=1000, autostart=True)


@pytest.fixture
def engine(cache, recorder) -> CalculationEngine:
    return CalculationEngine(cache=cache, telemetry=recorder, weight_tolerance=0.01)


@pytest.fixture
def orchestrator(cache, recorder) -> RecoveryOrchestrator:
    """Orchestrator with no settle or restart delay."""
    return RecoveryOrchestrator(
        cache=cache,
        telemetry=recorder,
        max_retry_attempts=3,
        auto_recovery=True,
        settle_delay=0,
        telemetry_restart_delay=0,
        name="test",
    )
