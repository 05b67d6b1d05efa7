"""
Tests for the calculation engine and input validation.
"""

import asyncio
import dataclasses

import pytest

from conftest import FailingRecorder, make_snapshot
from wacc_engine.entities import (
    BoundaryState,
    BuildUpComponent,
    CacheStatus,
    CostOfDebtMode,
    DebtComponent,
    InputSnapshot,
)
from wacc_engine.errors import ComputationFailure, InvalidInputError
from wacc_engine.services import CalculationEngine, RecoveryOrchestrator, compute_wacc, validate_snapshot
from wacc_engine.services.calculation_service import CALCULATION_METRIC
from wacc_engine.utils import fingerprint


def test_compute_wacc_blends_equity_and_after_tax_debt(snapshot):
    """Ke 12.5%, Kd 4% at 25% tax and 60/40 weights gives 8.7%."""
    result = compute_wacc(snapshot)

    assert result.cost_of_equity == pytest.approx(12.5)
    assert result.cost_of_debt == pytest.approx(4.0)
    assert result.after_tax_cost_of_debt == pytest.approx(3.0)
    assert result.equity_contribution == pytest.approx(7.5)
    assert result.debt_contribution == pytest.approx(1.2)
    assert result.wacc == pytest.approx(8.7)


def test_compute_wacc_capital_structure(snapshot):
    """Test the Equity, Debt and Total rows."""
    rows = compute_wacc(snapshot).capital_structure

    assert [row.component for row in rows] == ["Equity", "Debt", "Total"]
    assert rows[0].weight == 60.0
    assert rows[1].cost == pytest.approx(3.0)
    assert rows[2].weight == 100.0
    assert rows[2].cost is None
    assert rows[2].extended_value == pytest.approx(rows[0].extended_value + rows[1].extended_value)


def test_compute_wacc_derived_cost_of_debt():
    """Derived mode divides total interest by total debt."""
    snapshot = make_snapshot(mode=CostOfDebtMode.DERIVED)

    result = compute_wacc(snapshot)

    assert result.cost_of_debt == pytest.approx(4.0)
    assert result.wacc == pytest.approx(8.7)


def test_compute_wacc_is_bit_identical_for_equal_inputs(snapshot):
    """Test that equal snapshots give identical numbers."""
    first = compute_wacc(snapshot)
    second = compute_wacc(make_snapshot())

    assert first.wacc == second.wacc
    assert first.capital_structure == second.capital_structure


def test_calculate_returns_result_with_performance(engine, snapshot):
    """Test a first calculation is a miss carrying the fingerprint."""
    result = asyncio.run(engine.calculate(snapshot))

    assert result.wacc == pytest.approx(8.7)
    assert result.performance.cache_status is CacheStatus.MISS
    assert result.performance.fingerprint == fingerprint(snapshot)
    assert result.performance.duration_ms >= 0


def test_calculate_serves_repeat_from_cache(engine, snapshot):
    """Test that a repeated calculation is a hit and does not recompute."""

    async def run():
        first = await engine.calculate(snapshot)
        second = await engine.calculate(make_snapshot())
        return first, second

    first, second = asyncio.run(run())

    assert engine.computation_count == 1
    assert second.performance.cache_status is CacheStatus.HIT
    assert second.wacc == first.wacc


def test_calculate_does_not_mutate_cached_result(engine, cache, snapshot):
    """Test each call gets its own performance record."""

    async def run():
        first = await engine.calculate(snapshot)
        second = await engine.calculate(snapshot)
        cached = await cache.get_or_compute(fingerprint(snapshot), _unreachable)
        return first, second, cached

    first, second, cached = asyncio.run(run())

    assert first.performance.cache_status is CacheStatus.MISS
    assert second.performance.cache_status is CacheStatus.HIT
    assert cached.performance.duration_ms == 0.0


async def _unreachable():
    raise AssertionError("cache should have served this")


def test_concurrent_calculations_compute_once(engine, snapshot):
    """Test concurrent callers with the same inputs share one computation."""

    async def run():
        return await asyncio.gather(*(engine.calculate(snapshot) for _ in range(10)))

    results = asyncio.run(run())

    assert engine.computation_count == 1
    statuses = [r.performance.cache_status for r in results]
    assert statuses.count(CacheStatus.MISS) == 1
    assert all(r.wacc == results[0].wacc for r in results)


def test_calculate_emits_one_metric_per_call(engine, recorder, snapshot):
    """Test each call records exactly one calculation event."""

    async def run():
        await engine.calculate(snapshot)
        await engine.calculate(snapshot)

    asyncio.run(run())

    events = recorder.get_metrics(name=CALCULATION_METRIC)
    assert len(events) == 2
    assert events[0].metadata["cache_hit"] is False
    assert events[1].metadata["cache_hit"] is True
    assert events[1].metadata["cache_status"] == "hit"
    assert events[0].metadata["input_size"] == 7
    assert events[0].metadata["error_occurred"] is False
    assert {"calculation", "wacc"} <= events[0].tags


def test_negative_build_up_component_is_rejected(engine, cache, recorder):
    """Test a negative component is reported by path and never cached."""
    snapshot = make_snapshot(
        build_up=(
            BuildUpComponent("Risk-free Rate", 4.0),
            BuildUpComponent("Size Premium", -1.0),
        )
    )

    with pytest.raises(InvalidInputError) as exc_info:
        asyncio.run(engine.calculate(snapshot))

    assert exc_info.value.field_path == "build_up[1].value"
    assert fingerprint(snapshot) not in cache
    assert cache.get_stats()["misses"] == 0
    assert recorder.get_metrics(name=CALCULATION_METRIC) == ()


def test_weights_not_summing_to_100_are_rejected(engine, cache):
    """Test the weight check runs before any cache access."""
    snapshot = make_snapshot(weight_of_debt=45.0)

    with pytest.raises(InvalidInputError) as exc_info:
        asyncio.run(engine.calculate(snapshot))

    assert exc_info.value.field_path == "weights"
    stats = cache.get_stats()
    assert stats["misses"] == 0
    assert stats["hits"] == 0


def test_weight_sum_within_tolerance_is_accepted(engine):
    """Test small rounding differences in weights are accepted."""
    snapshot = make_snapshot(weight_of_debt=40.005, weight_of_equity=60.0)

    result = asyncio.run(engine.calculate(snapshot))

    assert result.weight_of_debt == 40.005


def test_clear_cache_forces_recomputation(engine, snapshot):
    """Test a cleared cache gives a fresh miss."""

    async def run():
        await engine.calculate(snapshot)
        removed = engine.clear_cache()
        result = await engine.calculate(snapshot)
        return removed, result

    removed, result = asyncio.run(run())

    assert removed == 1
    assert result.performance.cache_status is CacheStatus.MISS
    assert engine.computation_count == 2


def test_unexpected_arithmetic_failure_is_wrapped(engine, recorder, snapshot, monkeypatch):
    """Test that a crash in the arithmetic surfaces as ComputationFailure."""

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("wacc_engine.services.calculation_service.compute_wacc", broken)

    with pytest.raises(ComputationFailure, match="WACC calculation failed: boom"):
        asyncio.run(engine.calculate(snapshot))

    events = recorder.get_metrics(name=CALCULATION_METRIC)
    assert len(events) == 1
    assert events[0].metadata["error_occurred"] is True
    assert fingerprint(snapshot) not in engine.cache


@pytest.mark.parametrize(
    ("overrides", "path"),
    [
        ({"build_up": ()}, "build_up"),
        ({"build_up": (BuildUpComponent("", 1.0),)}, "build_up[0].name"),
        ({"build_up": (BuildUpComponent("Rate", float("nan")),)}, "build_up[0].value"),
        ({"build_up": (BuildUpComponent("Rate", True),)}, "build_up[0].value"),
        ({"cost_of_debt": (DebtComponent("Base Rate", 2.5),)}, "cost_of_debt"),
        ({"weight_of_debt": 120.0, "weight_of_equity": -20.0}, "weight_of_debt"),
        ({"tax_rate": 101.0}, "tax_rate"),
    ],
)
def test_validate_snapshot_reports_field_path(overrides, path):
    """Test each validation rule names the offending field."""
    with pytest.raises(InvalidInputError) as exc_info:
        validate_snapshot(make_snapshot(**overrides), tolerance=0.01)

    assert exc_info.value.field_path == path
    assert str(exc_info.value).startswith(f"{path}: ")


def test_validate_snapshot_rejects_zero_total_debt_in_derived_mode():
    """Test derived mode cannot divide by zero."""
    snapshot = make_snapshot(
        mode=CostOfDebtMode.DERIVED,
        cost_of_debt=(
            DebtComponent("Base Rate", 2.5),
            DebtComponent("Credit Spread", 1.5),
            DebtComponent("Total Interest", 400_000.0),
            DebtComponent("Total Debt", 0.0),
        ),
    )

    with pytest.raises(InvalidInputError) as exc_info:
        validate_snapshot(snapshot, tolerance=0.01)

    assert exc_info.value.field_path == "cost_of_debt[3].value"


def test_validate_snapshot_accepts_sample():
    """Test the sample inputs are valid."""
    validate_snapshot(InputSnapshot.sample(), tolerance=0.01)


def test_snapshot_freezes_lists():
    """Test lists passed in are stored as tuples."""
    snapshot = make_snapshot(build_up=[BuildUpComponent("Rate", 5.0)])

    assert isinstance(snapshot.build_up, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.tax_rate = 30.0  # type: ignore[misc]


def test_derived_cost_of_debt_overflow_is_rejected(engine, cache):
    """Test a derived cost of debt that overflows is invalid input, not a result."""
    snapshot = make_snapshot(
        mode=CostOfDebtMode.DERIVED,
        cost_of_debt=(
            DebtComponent("Base Rate", 2.5),
            DebtComponent("Credit Spread", 1.5),
            DebtComponent("Total Interest", 1e308),
            DebtComponent("Total Debt", 1e-10),
        ),
    )

    with pytest.raises(InvalidInputError) as exc_info:
        asyncio.run(engine.calculate(snapshot))

    assert exc_info.value.field_path == "cost_of_debt[2].value"
    assert engine.computation_count == 0
    assert cache.get_stats()["misses"] == 0


def test_build_up_sum_overflow_is_rejected(engine):
    """Test a build-up sum beyond float range is invalid input."""
    snapshot = make_snapshot(
        build_up=(
            BuildUpComponent("Risk-free Rate", 1e308),
            BuildUpComponent("Market Risk Premium", 1e308),
        )
    )

    with pytest.raises(InvalidInputError) as exc_info:
        asyncio.run(engine.calculate(snapshot))

    assert exc_info.value.field_path == "build_up"
    assert engine.computation_count == 0


def test_blended_rate_overflow_is_rejected():
    """Test finite costs whose weighted blend overflows are rejected."""
    snapshot = make_snapshot(
        build_up=(BuildUpComponent("Risk-free Rate", 1.79e308),),
        cost_of_debt=(
            DebtComponent("Base Rate", 1.79e308),
            DebtComponent("Credit Spread", 0.0),
            DebtComponent("Total Interest", 400_000.0),
            DebtComponent("Total Debt", 10_000_000.0),
        ),
        weight_of_debt=50.5,
        weight_of_equity=50.5,
        tax_rate=0.0,
    )

    with pytest.raises(InvalidInputError) as exc_info:
        validate_snapshot(snapshot, tolerance=1.0)

    assert exc_info.value.field_path == "weights"


def test_overflowing_inputs_do_not_fault_the_boundary(cache, recorder, engine):
    """Test repeated overflowing requests leave the boundary stable."""
    orchestrator = RecoveryOrchestrator(
        cache=cache,
        telemetry=recorder,
        max_retry_attempts=2,
        settle_delay=0,
        telemetry_restart_delay=0,
        name="test",
    )
    snapshot = make_snapshot(
        build_up=(
            BuildUpComponent("Risk-free Rate", 1e308),
            BuildUpComponent("Market Risk Premium", 1e308),
        )
    )

    async def run():
        for _ in range(3):
            with pytest.raises(InvalidInputError):
                await orchestrator.run(lambda: engine.calculate(snapshot))

    asyncio.run(run())

    assert orchestrator.state is BoundaryState.STABLE
    assert orchestrator.retry_attempts == 0


def test_failing_telemetry_does_not_break_calculation(cache, snapshot):
    """Test a sink that raises on every write leaves calculations intact."""
    engine = CalculationEngine(cache=cache, telemetry=FailingRecorder.create(), weight_tolerance=0.01)

    async def run():
        first = await engine.calculate(snapshot)
        second = await engine.calculate(snapshot)
        return first, second

    first, second = asyncio.run(run())

    assert first.wacc == pytest.approx(8.7)
    assert second.performance.cache_status is CacheStatus.HIT
