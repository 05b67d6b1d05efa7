"""Repository layer for process-local shared state.

This layer holds the two stateful services every boundary shares: the
result cache and the telemetry buffer. Both are protocol-based
(structural typing), so any class implementing the required methods can
replace them.
"""

from wacc_engine.protocols import ResultCache, TelemetrySink

from .memory_result_cache import InMemoryResultCache
from .telemetry_recorder import TelemetryRecorder

__all__ = [
    "InMemoryResultCache",
    "ResultCache",
    "TelemetryRecorder",
    "TelemetrySink",
]
