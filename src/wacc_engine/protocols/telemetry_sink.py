"""Telemetry sink protocol.

Defines the interface every component uses to emit metric events. Telemetry
is best-effort: implementations must never raise from ``record_metric``.
"""

from typing import Any, Protocol, runtime_checkable

from wacc_engine.entities import MetricEvent


@runtime_checkable
class TelemetrySink(Protocol):
    """Protocol for metric event recorders."""

    @property
    def is_monitoring(self) -> bool:
        """Whether events are currently being collected."""
        ...

    def record_metric(self, event: MetricEvent) -> None:
        """Append an event; dropped silently while monitoring is stopped."""
        ...

    def record(
        self,
        name: str,
        value: float,
        *,
        metadata: dict[str, Any] | None = None,
        tags: tuple[str, ...] | frozenset[str] = (),
    ) -> None:
        """Build and record an event stamped with the current time."""
        ...

    def start_monitoring(self) -> None:
        """Begin collecting events."""
        ...

    def stop_monitoring(self) -> None:
        """Stop collecting events."""
        ...

    def get_metrics(
        self,
        name: str | None = None,
        tag: str | None = None,
    ) -> tuple[MetricEvent, ...]:
        """Return a snapshot of the buffered events, optionally filtered."""
        ...
