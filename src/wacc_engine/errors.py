"""Exception taxonomy for the WACC engine.

Validation problems are caller-fixable and surface immediately as
``InvalidInputError``. Everything else is caught at a protected boundary,
classified, and handled by the recovery orchestrator, which re-raises it
wrapped in ``FaultedBoundaryError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wacc_engine.entities import FailureRecord


class WACCError(Exception):
    """Base class for all WACC engine errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CalculationError(WACCError):
    """Raised when a WACC calculation cannot produce a result."""


class InvalidInputError(CalculationError):
    """Raised when an input snapshot fails validation.

    Attributes:
        field_path: Dotted path of the offending field, e.g. ``build_up[2].value``
    """

    def __init__(self, field_path: str, message: str) -> None:
        self.field_path = field_path
        super().__init__(f"{field_path}: {message}")


class ComputationFailure(CalculationError):
    """Raised when the arithmetic itself fails unexpectedly."""


class CacheFailure(WACCError):
    """Raised by the result cache."""


class TelemetryFailure(WACCError):
    """Raised by a telemetry sink."""


class HostIntegrationFailure(WACCError):
    """Raised by the host spreadsheet integration layer."""


class FaultedBoundaryError(WACCError):
    """Raised by a protected boundary after a fault was classified and handled.

    Attributes:
        record: The failure record for the fault
        terminal: True if the boundary needs a manual reset
        retry_attempts: Recovery attempts made since the last reset
        max_retry_attempts: Configured maximum for the boundary
    """

    def __init__(
        self,
        message: str,
        record: FailureRecord | None,
        terminal: bool,
        retry_attempts: int,
        max_retry_attempts: int,
    ) -> None:
        self.record = record
        self.terminal = terminal
        self.retry_attempts = retry_attempts
        self.max_retry_attempts = max_retry_attempts
        super().__init__(message)
