"""Metric event domain entity."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MetricEvent:
    """A single named, timestamped telemetry measurement.

    Attributes:
        name: Metric name, e.g. ``wacc-calculation``
        value: Measured value (milliseconds for timings, 1 for counters)
        timestamp: Unix timestamp of the measurement
        metadata: Free-form details
        tags: Labels used for filtering
    """

    name: str
    value: float
    timestamp: float
    metadata: dict[str, Any] = field(default_factory=dict)
    tags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", frozenset(self.tags))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "name": self.name,
            "value": self.value,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
            "tags": sorted(self.tags),
        }
