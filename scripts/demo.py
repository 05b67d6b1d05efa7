#!/usr/bin/env python3
"""
Demo script for the WACC engine.

This script walks through a calculation, result caching, input validation,
fault recovery and the telemetry report using the sample inputs.
"""

import asyncio
import dataclasses

from wacc_engine import (
    CacheFailure,
    CalculationEngine,
    FaultedBoundaryError,
    InMemoryResultCache,
    InputSnapshot,
    InvalidInputError,
    RecoveryOrchestrator,
    TelemetryRecorder,
    generate_report,
)
from wacc_engine.entities import BuildUpComponent


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo_calculation(engine: CalculationEngine) -> None:
    """Demonstrate a single calculation."""
    print_section("WACC Calculation")

    snapshot = InputSnapshot.sample()
    result = await engine.calculate(snapshot)

    print("\n📝 Inputs:")
    for component in snapshot.build_up:
        print(f"  {component.name:<28} {component.value:>8.2f}%")
    print(f"  {'Weight of debt':<28} {snapshot.weight_of_debt:>8.2f}%")
    print(f"  {'Weight of equity':<28} {snapshot.weight_of_equity:>8.2f}%")
    print(f"  {'Tax rate':<28} {snapshot.tax_rate:>8.2f}%")

    print("\n📊 Capital structure:")
    print(f"  {'Component':<12} {'Weight':>10} {'Cost':>10} {'Extended':>10}")
    print("  " + "-" * 44)
    for row in result.capital_structure:
        cost = f"{row.cost:.3f}" if row.cost is not None else ""
        print(f"  {row.component:<12} {row.weight:>10.2f} {cost:>10} {row.extended_value:>10.3f}")

    print(f"\n  WACC: {result.wacc:.3f}%")
    print(f"  Cache: {result.performance.cache_status.value}, {result.performance.duration_ms:.3f}ms")


async def demo_caching(engine: CalculationEngine) -> None:
    """Demonstrate cache hits and shared computations."""
    print_section("Result Cache")

    snapshot = InputSnapshot.sample()
    result = await engine.calculate(snapshot)
    print(f"\n🔍 Repeat calculation: {result.performance.cache_status.value}")

    # Five concurrent callers with new inputs share one computation
    changed = dataclasses.replace(snapshot, tax_rate=21.0)
    before = engine.computation_count
    results = await asyncio.gather(*(engine.calculate(changed) for _ in range(5)))
    statuses = [r.performance.cache_status.value for r in results]
    print(f"🔍 Concurrent callers: {statuses}")
    print(f"   Computations performed: {engine.computation_count - before}")

    stats = engine.cache.get_stats()
    print(f"\n📈 Hit rate: {stats['hit_rate']:.2%} ({stats['entry_count']} entries)")


async def demo_validation(engine: CalculationEngine) -> None:
    """Demonstrate input validation errors."""
    print_section("Input Validation")

    bad_inputs = [
        dataclasses.replace(
            InputSnapshot.sample(),
            build_up=(BuildUpComponent("Risk-free rate", -1.0),),
        ),
        dataclasses.replace(InputSnapshot.sample(), weight_of_debt=50.0),
    ]

    for snapshot in bad_inputs:
        try:
            await engine.calculate(snapshot)
            print("  ✗ Unexpected success")
        except InvalidInputError as e:
            print(f"  ✓ Rejected at {e.field_path}: {e.message}")


async def demo_recovery(orchestrator: RecoveryOrchestrator, engine: CalculationEngine) -> None:
    """Demonstrate fault classification and recovery."""
    print_section("Fault Recovery")

    async def failing_lookup():
        raise CacheFailure("Result cache storage is unavailable")

    try:
        await orchestrator.run(failing_lookup)
    except FaultedBoundaryError as e:
        status = orchestrator.status()
        print(f"\n  Fault: {e.message}")
        print(f"  State after recovery: {status['state']}")
        print(f"  Remediation: {status['remediation_history']}")

    result = await orchestrator.run(lambda: engine.calculate(InputSnapshot.sample()))
    print(f"\n  ✓ Boundary usable again, WACC {result.wacc:.3f}% ({result.performance.cache_status.value})")


def demo_report(recorder: TelemetryRecorder) -> None:
    """Demonstrate the performance report."""
    print_section("Performance Report")

    report = generate_report(recorder.get_metrics())
    calculation = report.calculation
    print(f"\n  Calculations: {calculation.total_calculations}")
    print(f"  Average: {calculation.average_ms:.3f}ms, p95: {calculation.p95_ms:.3f}ms")
    print(f"  Cache hit rate: {calculation.cache_hit_rate:.2%}")
    print(f"  Faults: {report.recovery.faults_by_category}")
    print(f"  Score: {report.summary.score} ({report.summary.grade})")
    for recommendation in report.summary.recommendations:
        print(f"  - {recommendation}")

    print("\n  CSV export preview:")
    for line in recorder.export_metrics("csv").splitlines()[:4]:
        print(f"    {line}")


async def run_demo() -> None:
    cache = InMemoryResultCache.create()
    recorder = TelemetryRecorder.create(autostart=True)
    engine = CalculationEngine(cache=cache, telemetry=recorder)
    orchestrator = RecoveryOrchestrator(
        cache=cache,
        telemetry=recorder,
        settle_delay=0.1,
        name="demo",
    )

    try:
        await demo_calculation(engine)
        await demo_caching(engine)
        await demo_validation(engine)
        await demo_recovery(orchestrator, engine)
        demo_report(recorder)
    finally:
        await orchestrator.close()


def main() -> None:
    """Run all demos."""
    print("\n🚀 WACC Engine Demo")
    print("=" * 70)

    asyncio.run(run_demo())

    print("\n" + "=" * 70)
    print("✅ Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
