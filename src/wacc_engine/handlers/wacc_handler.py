"""HTTP handlers for WACC operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

from typing import Any

from fastapi import HTTPException, Response, status

from wacc_engine.dto import (
    CacheStatsResponse,
    CalculateRequest,
    CalculateResponse,
    HealthCheckResponse,
    MetricItem,
    MetricsResponse,
    RecoveryStatusResponse,
)
from wacc_engine.entities import BoundaryState
from wacc_engine.errors import FaultedBoundaryError, InvalidInputError
from wacc_engine.repositories import InMemoryResultCache, TelemetryRecorder
from wacc_engine.services import (
    CalculationEngine,
    RecoveryOrchestrator,
    describe,
    generate_report,
    suggested_actions,
)

EXPORT_MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
}


class WACCHandler:
    """HTTP handlers for WACC operations.

    Every calculation runs inside the recovery orchestrator, so a failing
    engine is classified and remediated before the client sees a 503.

    Example:
        ```python
        handler = WACCHandler(
            engine=engine,
            orchestrator=orchestrator,
            cache=cache,
            telemetry=recorder,
        )

        @app.post("/wacc/calculate", response_model=CalculateResponse)
        async def calculate(request: CalculateRequest):
            return await handler.calculate(request)
        ```
    """

    def __init__(
        self,
        engine: CalculationEngine,
        orchestrator: RecoveryOrchestrator,
        cache: InMemoryResultCache,
        telemetry: TelemetryRecorder,
    ) -> None:
        """Initialize the handler.

        Args:
            engine: Calculation engine (required)
            orchestrator: Boundary protecting the engine (required)
            cache: Result cache shared with the engine (required)
            telemetry: Telemetry recorder shared with the engine (required)
        """
        self._engine = engine
        self._orchestrator = orchestrator
        self._cache = cache
        self._telemetry = telemetry

    async def calculate(self, request: CalculateRequest) -> CalculateResponse:
        """Handle POST /wacc/calculate requests.

        Raises:
            HTTPException: 422 for invalid inputs, 503 if the boundary faulted
        """
        snapshot = request.to_snapshot()
        try:
            result = await self._orchestrator.run(lambda: self._engine.calculate(snapshot))
        except InvalidInputError as e:
            raise HTTPException(
                status_code=422,
                detail={"field_path": e.field_path, "message": e.message},
            ) from e
        except FaultedBoundaryError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=self._fault_detail(e),
            ) from e

        return CalculateResponse.from_result(result)

    def _fault_detail(self, error: FaultedBoundaryError) -> dict[str, Any]:
        detail: dict[str, Any] = {
            "message": error.message,
            "state": self._orchestrator.state.value,
            "terminal": error.terminal,
            "retry_attempts": error.retry_attempts,
            "max_retry_attempts": error.max_retry_attempts,
            "category": None,
            "title": None,
            "description": None,
            "remediation_actions": [],
            "suggested_actions": [],
        }

        record = error.record
        if record is not None:
            title, description = describe(record.category)
            detail.update(
                category=record.category.value,
                title=title,
                description=description,
                remediation_actions=list(record.remediation_actions),
                suggested_actions=suggested_actions(record.category, record.error),
            )
        return detail

    async def clear_cache(self) -> dict:
        """Handle DELETE /cache requests."""
        count = self._engine.clear_cache()
        return {
            "success": True,
            "deleted_count": count,
            "message": "Cache cleared successfully",
        }

    async def get_cache_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests."""
        stats = self._cache.get_stats()
        return CacheStatsResponse(
            entry_count=stats["entry_count"],
            pending_count=stats["pending_count"],
            hits=stats["hits"],
            misses=stats["misses"],
            shared=stats["shared"],
            evictions=stats["evictions"],
            expirations=stats["expirations"],
            hit_rate=stats["hit_rate"],
            ttl_seconds=stats["ttl"],
            max_entries=stats["max_entries"],
        )

    async def get_metrics(self, name: str | None = None, tag: str | None = None) -> MetricsResponse:
        """Handle GET /metrics requests."""
        events = self._telemetry.get_metrics(name=name, tag=tag)
        return MetricsResponse(
            monitoring=self._telemetry.is_monitoring,
            count=len(events),
            metrics=[MetricItem.from_event(event) for event in events],
        )

    async def get_report(self, period_minutes: float = 30) -> dict:
        """Handle GET /metrics/report requests."""
        report = generate_report(self._telemetry.get_metrics(), period_minutes=period_minutes)
        return report.to_dict()

    async def export_metrics(self, fmt: str = "json") -> Response:
        """Handle GET /metrics/export requests.

        Raises:
            HTTPException: 400 for an unsupported format
        """
        try:
            content = self._telemetry.export_metrics(fmt)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            ) from e
        return Response(content=content, media_type=EXPORT_MEDIA_TYPES[fmt])

    async def get_recovery_status(self) -> RecoveryStatusResponse:
        """Handle GET /recovery/status requests."""
        return RecoveryStatusResponse(**self._orchestrator.status())

    async def retry(self) -> RecoveryStatusResponse:
        """Handle POST /recovery/retry requests.

        Raises:
            HTTPException: 409 if the boundary needs a reset instead
        """
        try:
            await self._orchestrator.retry()
        except FaultedBoundaryError as e:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=e.message,
            ) from e
        return RecoveryStatusResponse(**self._orchestrator.status())

    async def reset(self) -> RecoveryStatusResponse:
        """Handle POST /recovery/reset requests."""
        self._orchestrator.reset()
        return RecoveryStatusResponse(**self._orchestrator.status())

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        state = self._orchestrator.state
        return HealthCheckResponse(
            status="healthy" if state is BoundaryState.STABLE else "degraded",
            boundary_state=state.value,
            monitoring=self._telemetry.is_monitoring,
        )
