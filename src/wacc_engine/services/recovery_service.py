"""Recovery orchestration for protected boundaries.

A boundary wraps operations (usually ``CalculationEngine.calculate``) and
moves through these states when something fails::

    STABLE -> FAULTED -> RECOVERING -> STABLE
                                    -> TERMINAL (manual reset required)

Remediation per category:
- cache: clear the result cache
- telemetry: stop monitoring and schedule a delayed restart
- host-integration: nothing automated, surfaced for manual handling
- calculation: clear cached results so the next attempt recomputes
- unclassified: reset boundary state only

Several orchestrators can share one cache and one telemetry sink.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from wacc_engine.config import settings
from wacc_engine.entities import BoundaryState, FailureCategory, FailureRecord
from wacc_engine.errors import FaultedBoundaryError, InvalidInputError
from wacc_engine.protocols import ResultCache, TelemetrySink

from .failure_classifier import classify, describe, suggested_actions

logger = logging.getLogger(__name__)

T = TypeVar("T")

FAULT_METRIC = "error-boundary-catch"
RECOVERY_ATTEMPT_METRIC = "error-recovery-attempt"
RECOVERY_FAILED_METRIC = "error-recovery-failed"

OnError = Callable[[BaseException, FailureCategory, list[str]], None]


class RecoveryOrchestrator:
    """Bounded-retry state machine for one protected boundary.

    Example:
        ```python
        boundary = RecoveryOrchestrator.create(cache=cache, telemetry=recorder)

        try:
            result = await boundary.run(lambda: engine.calculate(snapshot))
        except FaultedBoundaryError as e:
            if e.terminal:
                boundary.reset()
        ```
    """

    def __init__(
        self,
        cache: ResultCache,
        telemetry: TelemetrySink,
        *,
        max_retry_attempts: int | None = None,
        auto_recovery: bool | None = None,
        settle_delay: float | None = None,
        telemetry_restart_delay: float | None = None,
        on_error: OnError | None = None,
        name: str = "default",
    ) -> None:
        """Initialize the orchestrator in the STABLE state.

        Args:
            cache: Shared result cache (required).
            telemetry: Shared telemetry sink (required).
            max_retry_attempts: Recovery attempts before the boundary turns
                terminal. Defaults to settings.
            auto_recovery: Remediate automatically when a fault is caught.
                Defaults to settings.
            settle_delay: Seconds to wait after remediation before leaving
                RECOVERING. Defaults to settings.
            telemetry_restart_delay: Seconds before a stopped telemetry sink
                is restarted. Defaults to settings.
            on_error: Called with (error, category, suggested actions) on
                every transition into FAULTED.
            name: Boundary name used in logs and metrics.
        """
        self._cache = cache
        self._telemetry = telemetry
        self._max_retry_attempts = (
            max_retry_attempts if max_retry_attempts is not None else settings.max_retry_attempts
        )
        self._auto_recovery = auto_recovery if auto_recovery is not None else settings.auto_recovery
        self._settle_delay = settle_delay if settle_delay is not None else settings.settle_delay
        self._telemetry_restart_delay = (
            telemetry_restart_delay
            if telemetry_restart_delay is not None
            else settings.telemetry_restart_delay
        )
        if self._max_retry_attempts < 1:
            raise ValueError("max_retry_attempts must be at least 1")

        self._on_error = on_error
        self._name = name

        self._state = BoundaryState.STABLE
        self._retry_attempts = 0
        self._record: FailureRecord | None = None
        self._history: list[str] = []
        self._settle_task: asyncio.Task | None = None
        self._restart_handle: asyncio.TimerHandle | None = None
        # Bumped by reset()/close() so in-flight recoveries can tell they are stale
        self._epoch = 0
        self._closed = False

    @classmethod
    def create(
        cls,
        cache: ResultCache,
        telemetry: TelemetrySink,
        max_retry_attempts: int | None = None,
        auto_recovery: bool | None = None,
        on_error: OnError | None = None,
        name: str = "default",
    ) -> "RecoveryOrchestrator":
        """Factory method to create a RecoveryOrchestrator with settings delays.

        Args:
            cache: Shared result cache (required).
            telemetry: Shared telemetry sink (required).
            max_retry_attempts: If None, uses settings.
            auto_recovery: If None, uses settings.
            on_error: Optional fault callback.
            name: Boundary name.

        Returns:
            Configured RecoveryOrchestrator
        """
        return cls(
            cache=cache,
            telemetry=telemetry,
            max_retry_attempts=max_retry_attempts,
            auto_recovery=auto_recovery,
            on_error=on_error,
            name=name,
        )

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run an operation inside the boundary.

        Args:
            operation: Zero-argument callable returning an awaitable

        Returns:
            Whatever the operation returned

        Raises:
            InvalidInputError: Passed through untouched, never recovered
            FaultedBoundaryError: If the operation failed (after the fault was
                classified and handled), or the boundary is not STABLE
        """
        if self._closed:
            raise RuntimeError(f"Boundary '{self._name}' is closed")

        if self._state is not BoundaryState.STABLE:
            raise self._boundary_error(f"Boundary '{self._name}' is {self._state.value}")

        try:
            return await operation()
        except InvalidInputError:
            raise
        except Exception as exc:
            record = await self.handle_failure(exc)
            raise self._boundary_error(str(exc), record) from exc

    async def handle_failure(self, exc: BaseException) -> FailureRecord:
        """Classify a fault and, if allowed, remediate it.

        Also used by outer layers (UI, host integration) to report faults
        they caught themselves.

        Args:
            exc: The caught exception

        Returns:
            The failure record for the fault

        Raises:
            ValueError: If given a validation error, which is never recovered
        """
        if isinstance(exc, InvalidInputError):
            raise ValueError("Validation failures are reported to the caller, not recovered")

        if self._state in (BoundaryState.RECOVERING, BoundaryState.TERMINAL) and self._record is not None:
            logger.warning(
                "Boundary %s is %s, ignoring additional fault: %s",
                self._name,
                self._state.value,
                exc,
            )
            return self._record

        category = classify(exc)
        record = FailureRecord(
            category=category,
            error_description=f"{type(exc).__name__}: {exc}",
            attempts=self._retry_attempts,
            error=exc,
        )
        self._record = record
        self._state = BoundaryState.FAULTED

        logger.warning(
            "Boundary %s faulted (%s, attempt %d/%d): %s",
            self._name,
            category.value,
            self._retry_attempts,
            self._max_retry_attempts,
            exc,
        )
        self._emit(FAULT_METRIC, record, tag="boundary")
        self._notify(exc, category)

        if self._auto_recovery and category is not FailureCategory.HOST_INTEGRATION:
            if self._retry_attempts < self._max_retry_attempts:
                await self._recover(record)

        return record

    async def retry(self) -> BoundaryState:
        """Run a manual recovery attempt for the current fault.

        Returns:
            The state after the attempt

        Raises:
            FaultedBoundaryError: If the boundary is terminal
        """
        if self._state is BoundaryState.TERMINAL:
            raise self._boundary_error(f"Boundary '{self._name}' needs a manual reset")

        if self._state is BoundaryState.FAULTED and self._record is not None:
            await self._recover(self._record)

        return self._state

    def reset(self) -> None:
        """Return to STABLE from any state.

        Cancels the settle delay and any pending telemetry restart, zeroes
        the retry counter and clears the remediation history. A telemetry
        restart that was still pending is performed immediately so a reset
        never leaves monitoring switched off.
        """
        self._epoch += 1
        restart_pending = self._cancel_scheduled()
        if restart_pending:
            self._restart_telemetry()

        self._state = BoundaryState.STABLE
        self._retry_attempts = 0
        self._record = None
        self._history.clear()
        logger.info("Boundary %s reset", self._name)

    async def close(self) -> None:
        """Tear down the boundary, cancelling every scheduled transition."""
        self._closed = True
        self._epoch += 1
        task = self._settle_task
        self._cancel_scheduled()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _recover(self, record: FailureRecord) -> None:
        epoch = self._epoch
        self._state = BoundaryState.RECOVERING
        self._emit(RECOVERY_ATTEMPT_METRIC, record, tag="recovery")

        try:
            actions = self._remediate(record.category)
        except Exception as exc:
            self._state = BoundaryState.TERMINAL
            record.attempts = self._retry_attempts
            logger.warning(
                "Remediation failed for boundary %s (%s): %s",
                self._name,
                record.category.value,
                exc,
            )
            self._emit(RECOVERY_FAILED_METRIC, record, tag="recovery", recovery_error=str(exc))
            return

        record.remediation_actions.extend(actions)
        self._history.extend(actions)

        try:
            settled = await self._settle()
        except asyncio.CancelledError:
            if epoch == self._epoch:
                self._state = BoundaryState.FAULTED
            raise

        if not settled or epoch != self._epoch:
            return

        self._retry_attempts += 1
        record.attempts = self._retry_attempts
        if self._retry_attempts >= self._max_retry_attempts:
            self._state = BoundaryState.TERMINAL
            logger.warning(
                "Boundary %s reached %d recovery attempts, manual reset required",
                self._name,
                self._retry_attempts,
            )
        else:
            self._state = BoundaryState.STABLE
            self._record = None
            logger.info(
                "Boundary %s recovered (%d/%d attempts used)",
                self._name,
                self._retry_attempts,
                self._max_retry_attempts,
            )

    def _remediate(self, category: FailureCategory) -> list[str]:
        if category is FailureCategory.CACHE:
            removed = self._cache.clear()
            return [f"Cleared result cache ({removed} entries)"]

        if category is FailureCategory.CALCULATION:
            removed = self._cache.clear()
            return [f"Cleared calculation cache ({removed} entries)"]

        if category is FailureCategory.TELEMETRY:
            self._telemetry.stop_monitoring()
            if self._restart_handle is not None:
                self._restart_handle.cancel()
            self._restart_handle = asyncio.get_running_loop().call_later(
                self._telemetry_restart_delay,
                self._restart_telemetry,
            )
            return [
                "Stopped performance monitoring",
                f"Scheduled monitoring restart in {self._telemetry_restart_delay:g}s",
            ]

        if category is FailureCategory.HOST_INTEGRATION:
            return []

        return ["Reset boundary state"]

    async def _settle(self) -> bool:
        """Wait out the settle delay; False if it was cancelled."""
        task = asyncio.ensure_future(asyncio.sleep(self._settle_delay))
        self._settle_task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._settle_task is task:
                self._settle_task = None
        return not task.cancelled()

    def _restart_telemetry(self) -> None:
        self._restart_handle = None
        try:
            self._telemetry.start_monitoring()
        except Exception:
            logger.warning("Failed to restart telemetry for boundary %s", self._name, exc_info=True)

    def _cancel_scheduled(self) -> bool:
        """Cancel the settle delay and telemetry restart.

        Returns:
            True if a telemetry restart was pending
        """
        if self._settle_task is not None:
            self._settle_task.cancel()
            self._settle_task = None

        restart_pending = self._restart_handle is not None
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None
        return restart_pending

    def _emit(self, name: str, record: FailureRecord, tag: str, **extra: Any) -> None:
        try:
            self._telemetry.record(
                name,
                1,
                metadata={
                    "boundary": self._name,
                    "category": record.category.value,
                    "retry_attempts": self._retry_attempts,
                    "max_retry_attempts": self._max_retry_attempts,
                    "error": record.error_description,
                    **extra,
                },
                tags=("error", tag, record.category.value),
            )
        except Exception:
            logger.warning("Failed to record %s metric", name, exc_info=True)

    def _notify(self, exc: BaseException, category: FailureCategory) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(exc, category, suggested_actions(category, exc))
        except Exception:
            logger.exception("on_error callback failed for boundary %s", self._name)

    def _boundary_error(self, message: str, record: FailureRecord | None = None) -> FaultedBoundaryError:
        return FaultedBoundaryError(
            message,
            record=record or self._record,
            terminal=self._state is BoundaryState.TERMINAL,
            retry_attempts=self._retry_attempts,
            max_retry_attempts=self._max_retry_attempts,
        )

    def status(self) -> dict[str, Any]:
        """Snapshot of the boundary for diagnostics and error presentation."""
        record = self._record
        failure: dict[str, Any] | None = None
        if record is not None:
            title, description = describe(record.category)
            failure = {
                "category": record.category.value,
                "title": title,
                "description": description,
                "error": record.error_description,
                "attempts": record.attempts,
                "remediation_actions": list(record.remediation_actions),
                "suggested_actions": suggested_actions(record.category, record.error),
                "occurred_at": record.occurred_at,
            }

        return {
            "name": self._name,
            "state": self._state.value,
            "retry_attempts": self._retry_attempts,
            "max_retry_attempts": self._max_retry_attempts,
            "auto_recovery": self._auto_recovery,
            "can_retry": self.can_retry,
            "failure": failure,
            "remediation_history": list(self._history),
        }

    @property
    def state(self) -> BoundaryState:
        """Get the current state."""
        return self._state

    @property
    def retry_attempts(self) -> int:
        """Recovery attempts completed since the last reset."""
        return self._retry_attempts

    @property
    def max_retry_attempts(self) -> int:
        """Get the configured maximum number of recovery attempts."""
        return self._max_retry_attempts

    @property
    def record(self) -> FailureRecord | None:
        """The failure currently being handled, if any."""
        return self._record

    @property
    def remediation_history(self) -> tuple[str, ...]:
        """Every remediation action taken since the last reset."""
        return tuple(self._history)

    @property
    def can_retry(self) -> bool:
        """Whether a manual retry is currently possible."""
        return self._state is BoundaryState.FAULTED and self._retry_attempts < self._max_retry_attempts

    @property
    def name(self) -> str:
        """Get the boundary name."""
        return self._name
