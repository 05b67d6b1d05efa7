"""Protocol interfaces for swappable implementations.

Protocols enable:
- Injecting the shared cache and telemetry services instead of using globals
- Unit testing with fake implementations
- Several protected boundaries sharing the same services

Usage:
    ```python
    from wacc_engine.protocols import ResultCache, TelemetrySink

    cache: ResultCache = InMemoryResultCache()
    telemetry: TelemetrySink = TelemetryRecorder()
    ```
"""

from .result_cache import ComputeFn, ResultCache
from .telemetry_sink import TelemetrySink

__all__ = [
    "ComputeFn",
    "ResultCache",
    "TelemetrySink",
]
