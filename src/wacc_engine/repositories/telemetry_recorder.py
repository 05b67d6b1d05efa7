"""In-memory telemetry recorder.

Collects metric events from the calculation engine, the result cache path and
the recovery orchestrator into a bounded ring buffer. It satisfies the
TelemetrySink protocol.

Key properties:
- ``record_metric`` is synchronous and never raises
- Events recorded while monitoring is stopped are dropped, not queued
- When the buffer is full the oldest events are discarded
"""

import csv
import io
import json
import logging
import time
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from wacc_engine.config import settings
from wacc_engine.entities import MetricEvent

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv")


class TelemetryRecorder:
    """Bounded, start/stop-able sink for metric events.

    Constructed explicitly and passed to each component that emits
    metrics, so tests and separate boundaries can use their own instance.

    Example:
        ```python
        recorder = TelemetryRecorder.create()
        recorder.start_monitoring()
        recorder.record("wacc-calculation", 1.7, tags=("calculation",))
        recorder.get_metrics(tag="calculation")
        ```
    """

    def __init__(
        self,
        buffer_size: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the recorder in the stopped state.

        Args:
            buffer_size: Maximum number of retained events. Defaults to settings.
            clock: Wall clock used to timestamp events.
        """
        size = buffer_size if buffer_size is not None else settings.telemetry_buffer_size
        if size < 1:
            raise ValueError("buffer_size must be at least 1")

        self._buffer: deque[MetricEvent] = deque(maxlen=size)
        self._clock = clock
        self._monitoring = False
        self._start_times: dict[str, float] = {}
        self._dropped = 0

    @classmethod
    def create(cls, buffer_size: int | None = None, autostart: bool | None = None) -> "TelemetryRecorder":
        """Factory method to create a TelemetryRecorder with defaults.

        Args:
            buffer_size: Buffer capacity. If None, uses settings.
            autostart: Start monitoring immediately. If None, uses settings.

        Returns:
            Configured TelemetryRecorder
        """
        recorder = cls(buffer_size=buffer_size)
        if settings.telemetry_autostart if autostart is None else autostart:
            recorder.start_monitoring()
        return recorder

    @property
    def is_monitoring(self) -> bool:
        """Whether events are currently being collected."""
        return self._monitoring

    @property
    def buffer_size(self) -> int:
        """Maximum number of retained events."""
        return self._buffer.maxlen or 0

    @property
    def dropped_count(self) -> int:
        """Events discarded because the buffer was full."""
        return self._dropped

    def start_monitoring(self) -> None:
        """Begin collecting events. No-op if already started."""
        if self._monitoring:
            return
        self._monitoring = True
        logger.info("Performance monitoring started")

    def stop_monitoring(self) -> None:
        """Stop collecting events. Buffered events are kept."""
        if not self._monitoring:
            return
        self._monitoring = False
        self._start_times.clear()
        logger.info("Performance monitoring stopped")

    def record_metric(self, event: MetricEvent) -> None:
        """Append an event to the buffer.

        Args:
            event: The event to record
        """
        if not self._monitoring:
            return

        if len(self._buffer) == self._buffer.maxlen:
            self._dropped += 1
        self._buffer.append(event)

    def record(
        self,
        name: str,
        value: float,
        *,
        metadata: dict[str, Any] | None = None,
        tags: tuple[str, ...] | frozenset[str] = (),
    ) -> None:
        """Build an event stamped with the current time and record it.

        Malformed values are logged and dropped rather than raised.

        Args:
            name: Metric name
            value: Numeric value
            metadata: Optional details
            tags: Optional labels
        """
        if not self._monitoring:
            return

        try:
            event = MetricEvent(
                name=name,
                value=float(value),
                timestamp=self._clock(),
                metadata=dict(metadata or {}),
                tags=frozenset(tags),
            )
        except Exception:
            logger.debug("Dropping malformed metric %r", name, exc_info=True)
            return

        self.record_metric(event)

    def mark_start(self, name: str, metadata: dict[str, Any] | None = None) -> None:
        """Mark the start of a named timing measurement."""
        if not self._monitoring:
            return

        self._start_times[name] = time.perf_counter()
        self.record(f"{name}-start", 0.0, metadata=metadata, tags=("timing", "start"))

    def mark_end(self, name: str, metadata: dict[str, Any] | None = None) -> float:
        """Mark the end of a named timing measurement.

        Args:
            name: Name previously passed to ``mark_start``
            metadata: Optional details for the duration event

        Returns:
            Duration in milliseconds, or 0.0 if no start was marked
        """
        started = self._start_times.pop(name, None)
        if started is None:
            logger.warning("No start time found for metric: %s", name)
            return 0.0

        duration_ms = (time.perf_counter() - started) * 1000
        self.record(name, duration_ms, metadata=metadata, tags=("timing", "duration"))
        return duration_ms

    def get_metrics(
        self,
        name: str | None = None,
        tag: str | None = None,
    ) -> tuple[MetricEvent, ...]:
        """Return a snapshot of buffered events, oldest first.

        Args:
            name: Only events with this name
            tag: Only events carrying this tag

        Returns:
            Tuple of matching events
        """
        return tuple(
            event
            for event in self._buffer
            if (name is None or event.name == name) and (tag is None or tag in event.tags)
        )

    def clear_metrics(self) -> int:
        """Discard all buffered events.

        Returns:
            Number of events discarded
        """
        count = len(self._buffer)
        self._buffer.clear()
        self._dropped = 0
        return count

    def export_metrics(self, fmt: str = "json") -> str:
        """Serialize buffered events for external analysis.

        Args:
            fmt: ``json`` or ``csv``

        Returns:
            Serialized events

        Raises:
            ValueError: If the format is not supported
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format {fmt!r}, expected one of {EXPORT_FORMATS}")

        events = self.get_metrics()
        if fmt == "json":
            return json.dumps([event.to_dict() for event in events], indent=2, default=str)

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(["timestamp", "name", "value", "metadata", "tags"])
        for event in events:
            writer.writerow(
                [
                    datetime.fromtimestamp(event.timestamp, tz=timezone.utc).isoformat(),
                    event.name,
                    event.value,
                    json.dumps(event.metadata, sort_keys=True, default=str),
                    ";".join(sorted(event.tags)),
                ]
            )
        return output.getvalue()

    def get_stats(self) -> dict:
        """Get recorder statistics."""
        return {
            "monitoring": self._monitoring,
            "buffered_events": len(self._buffer),
            "buffer_size": self.buffer_size,
            "dropped_events": self._dropped,
        }
