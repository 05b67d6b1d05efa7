"""Calculation engine for WACC results.

The engine validates a snapshot, derives its fingerprint, reads through the
result cache and only runs the arithmetic on a miss. Each call that reaches
the cache emits exactly one ``wacc-calculation`` metric event.
"""

import dataclasses
import logging
import math
import time

from wacc_engine.entities import (
    CacheStatus,
    CapitalStructureRow,
    CostOfDebtMode,
    InputSnapshot,
    PerformanceRecord,
    WACCResult,
)
from wacc_engine.errors import CalculationError, ComputationFailure
from wacc_engine.protocols import ResultCache, TelemetrySink
from wacc_engine.utils import fingerprint as make_fingerprint

from .validation import validate_snapshot

logger = logging.getLogger(__name__)

CALCULATION_METRIC = "wacc-calculation"
CALCULATION_TAGS = ("calculation", "wacc")


def cost_of_equity(snapshot: InputSnapshot) -> float:
    """Sum the build-up components with an exactly rounded accumulator."""
    return math.fsum(item.value for item in snapshot.build_up)


def pre_tax_cost_of_debt(snapshot: InputSnapshot) -> float:
    """Pre-tax cost of debt for the snapshot's mode, as a percentage."""
    items = snapshot.cost_of_debt
    if snapshot.mode is CostOfDebtMode.DIRECT:
        return math.fsum((items[0].value, items[1].value))

    interest_expense, total_debt = items[2].value, items[3].value
    return interest_expense / total_debt * 100


def compute_wacc(snapshot: InputSnapshot, fingerprint: str = "") -> WACCResult:
    """Run the WACC arithmetic for an already validated snapshot.

    Pure and deterministic: identical snapshots give bit-identical numbers.

    Args:
        snapshot: Validated inputs
        fingerprint: Cache key recorded on the result's performance record

    Returns:
        The computed result, marked as a cache miss with zero duration
    """
    equity_weight = snapshot.weight_of_equity / 100
    debt_weight = snapshot.weight_of_debt / 100

    ke = cost_of_equity(snapshot)
    kd = pre_tax_cost_of_debt(snapshot)
    kd_after_tax = kd * (1 - snapshot.tax_rate / 100)

    equity_contribution = equity_weight * ke
    debt_contribution = debt_weight * kd_after_tax
    wacc = equity_contribution + debt_contribution

    capital_structure = (
        CapitalStructureRow("Equity", snapshot.weight_of_equity, ke, equity_contribution),
        CapitalStructureRow("Debt", snapshot.weight_of_debt, kd_after_tax, debt_contribution),
        CapitalStructureRow("Total", 100.0, None, wacc),
    )

    return WACCResult(
        cost_of_equity=ke,
        cost_of_debt=kd,
        after_tax_cost_of_debt=kd_after_tax,
        weight_of_debt=snapshot.weight_of_debt,
        weight_of_equity=snapshot.weight_of_equity,
        tax_rate=snapshot.tax_rate,
        equity_contribution=equity_contribution,
        debt_contribution=debt_contribution,
        wacc=wacc,
        capital_structure=capital_structure,
        performance=PerformanceRecord(0.0, CacheStatus.MISS, fingerprint),
    )


class CalculationEngine:
    """Validates inputs and serves WACC results through the result cache.

    Example:
        ```python
        engine = CalculationEngine(
            cache=InMemoryResultCache.create(),
            telemetry=TelemetryRecorder.create(),
        )
        result = await engine.calculate(InputSnapshot.sample())
        print(result.wacc)
        ```
    """

    def __init__(
        self,
        cache: ResultCache,
        telemetry: TelemetrySink,
        weight_tolerance: float | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            cache: Shared result cache (required).
            telemetry: Shared telemetry sink (required).
            weight_tolerance: Allowed deviation of the weight sum from 100.
                Defaults to settings.
        """
        self._cache = cache
        self._telemetry = telemetry
        self._weight_tolerance = weight_tolerance
        self._computations = 0

    async def calculate(self, snapshot: InputSnapshot) -> WACCResult:
        """Calculate the WACC for a snapshot.

        Args:
            snapshot: The inputs

        Returns:
            The result, with this call's own performance record

        Raises:
            InvalidInputError: Before any cache access, if validation fails
            ComputationFailure: If the arithmetic fails unexpectedly
        """
        started = time.perf_counter()
        validate_snapshot(snapshot, self._weight_tolerance)
        key = make_fingerprint(snapshot)

        async def compute() -> WACCResult:
            self._computations += 1
            try:
                return compute_wacc(snapshot, key)
            except CalculationError:
                raise
            except Exception as e:
                raise ComputationFailure(f"WACC calculation failed: {e}") from e

        try:
            result, status = await self._cache.get_or_compute_with_status(key, compute)
        except Exception:
            self._record(key, snapshot, (time.perf_counter() - started) * 1000, None)
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        self._record(key, snapshot, duration_ms, status)
        return dataclasses.replace(
            result,
            performance=PerformanceRecord(duration_ms, status, key),
        )

    def _record(
        self,
        key: str,
        snapshot: InputSnapshot,
        duration_ms: float,
        status: CacheStatus | None,
    ) -> None:
        try:
            self._telemetry.record(
                CALCULATION_METRIC,
                duration_ms,
                metadata={
                    "fingerprint": key,
                    "cache_status": status.value if status else None,
                    "cache_hit": status is not None and status is not CacheStatus.MISS,
                    "input_size": snapshot.input_size,
                    "error_occurred": status is None,
                },
                tags=CALCULATION_TAGS,
            )
        except Exception:
            # Telemetry is best-effort and must not break a calculation
            logger.warning("Failed to record calculation metric", exc_info=True)

    def clear_cache(self) -> int:
        """Drop all cached results.

        Returns:
            Number of entries removed
        """
        return self._cache.clear()

    @property
    def computation_count(self) -> int:
        """Number of times the arithmetic actually ran."""
        return self._computations

    @property
    def cache(self) -> ResultCache:
        """Get the underlying result cache (for testing)."""
        return self._cache

    @property
    def telemetry(self) -> TelemetrySink:
        """Get the underlying telemetry sink (for testing)."""
        return self._telemetry
