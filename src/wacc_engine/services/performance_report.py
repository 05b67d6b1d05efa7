"""Performance reporting over recorded metric events.

Aggregates the telemetry buffer into calculation and recovery statistics
and grades the result against fixed thresholds so regressions stand out.
"""

import time
from collections import Counter
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field

import numpy as np

from wacc_engine.entities import MetricEvent

from .calculation_service import CALCULATION_METRIC
from .recovery_service import FAULT_METRIC, RECOVERY_ATTEMPT_METRIC, RECOVERY_FAILED_METRIC

# Milliseconds
CALCULATION_THRESHOLDS = {
    "excellent": 50.0,
    "good": 100.0,
    "acceptable": 200.0,
    "poor": 500.0,
}

HIT_RATE_THRESHOLDS = {
    "excellent": 0.95,
    "good": 0.85,
    "acceptable": 0.70,
}


@dataclass
class CalculationStats:
    """Aggregate timing of ``wacc-calculation`` events."""

    total_calculations: int = 0
    average_ms: float = 0.0
    median_ms: float = 0.0
    p95_ms: float = 0.0
    cache_hit_rate: float = 0.0
    error_rate: float = 0.0


@dataclass
class RecoveryStats:
    """Fault and remediation counts."""

    faults: int = 0
    faults_by_category: dict[str, int] = field(default_factory=dict)
    recovery_attempts: int = 0
    recovery_failures: int = 0


@dataclass
class PerformanceSummary:
    """Overall score (0-100), letter grade and findings."""

    score: int = 100
    grade: str = "A"
    bottlenecks: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class PerformanceReport:
    """Report over a time window of recorded events."""

    period_start: float
    period_end: float
    calculation: CalculationStats
    recovery: RecoveryStats
    summary: PerformanceSummary

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


def percentile(values: list[float], q: float) -> float:
    """Nearest-rank percentile, 0.0 for no values."""
    if not values:
        return 0.0
    return float(np.percentile(np.asarray(values, dtype=float), q, method="inverted_cdf"))


def _calculation_stats(events: list[MetricEvent]) -> CalculationStats:
    calculations = [e for e in events if e.name == CALCULATION_METRIC]
    if not calculations:
        return CalculationStats()

    durations = np.asarray([e.value for e in calculations], dtype=float)
    hits = sum(1 for e in calculations if e.metadata.get("cache_hit") is True)
    errors = sum(1 for e in calculations if e.metadata.get("error_occurred"))

    return CalculationStats(
        total_calculations=len(calculations),
        average_ms=float(np.mean(durations)),
        median_ms=float(np.median(durations)),
        p95_ms=percentile(durations.tolist(), 95),
        cache_hit_rate=hits / len(calculations),
        error_rate=errors / len(calculations),
    )


def _recovery_stats(events: list[MetricEvent]) -> RecoveryStats:
    faults = [e for e in events if e.name == FAULT_METRIC]
    by_category = Counter(str(e.metadata.get("category", "unclassified")) for e in faults)
    return RecoveryStats(
        faults=len(faults),
        faults_by_category=dict(by_category),
        recovery_attempts=sum(1 for e in events if e.name == RECOVERY_ATTEMPT_METRIC),
        recovery_failures=sum(1 for e in events if e.name == RECOVERY_FAILED_METRIC),
    )


def _grade(score: int) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def _summarize(calculation: CalculationStats, recovery: RecoveryStats) -> PerformanceSummary:
    score = 100
    bottlenecks: list[str] = []
    recommendations: list[str] = []

    if calculation.average_ms > CALCULATION_THRESHOLDS["poor"]:
        score -= 30
        bottlenecks.append("Calculation Performance")
    elif calculation.average_ms > CALCULATION_THRESHOLDS["acceptable"]:
        score -= 15

    if calculation.average_ms > CALCULATION_THRESHOLDS["acceptable"]:
        recommendations.append(
            "Consider optimizing WACC calculation algorithm or increasing cache TTL"
        )

    # No calculations means there is no hit rate to judge
    if calculation.total_calculations and calculation.cache_hit_rate < HIT_RATE_THRESHOLDS["acceptable"]:
        score -= 20
        bottlenecks.append("Cache Efficiency")
        recommendations.append("Cache hit rate is low - review caching strategy and TTL settings")

    if recovery.recovery_failures:
        score -= 20
        bottlenecks.append("Error Recovery")
        recommendations.append("Remediation is failing - inspect terminal boundaries and reset them")
    elif recovery.faults:
        score -= min(10, 2 * recovery.faults)

    score = max(0, score)
    return PerformanceSummary(
        score=score,
        grade=_grade(score),
        bottlenecks=bottlenecks,
        recommendations=recommendations,
    )


def generate_report(
    events: Iterable[MetricEvent],
    period_minutes: float = 30,
    now: float | None = None,
) -> PerformanceReport:
    """Build a performance report over the last ``period_minutes``.

    Args:
        events: Recorded metric events
        period_minutes: Size of the window ending at ``now``
        now: Window end as a Unix timestamp. Defaults to the current time.

    Returns:
        PerformanceReport for the window
    """
    end = time.time() if now is None else now
    start = end - period_minutes * 60
    window = [e for e in events if start <= e.timestamp <= end]

    calculation = _calculation_stats(window)
    recovery = _recovery_stats(window)
    return PerformanceReport(
        period_start=start,
        period_end=end,
        calculation=calculation,
        recovery=recovery,
        summary=_summarize(calculation, recovery),
    )
