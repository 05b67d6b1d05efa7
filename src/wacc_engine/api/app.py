from typing import Any, Literal

from fastapi import FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware

from wacc_engine.api.dependencies import HandlerDep, lifespan
from wacc_engine.config import settings
from wacc_engine.dto import (
    CacheStatsResponse,
    CalculateRequest,
    CalculateResponse,
    HealthCheckResponse,
    MetricsResponse,
    RecoveryStatusResponse,
)

app = FastAPI(
    title="WACC Engine API",
    description="Weighted average cost of capital calculations with caching and fault recovery",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "WACC Engine API",
        "version": "0.1.0",
        "description": "Weighted average cost of capital calculations with caching and fault recovery",
        "endpoints": {
            "calculate": "/wacc/calculate",
            "cache": "/cache",
            "metrics": "/metrics",
            "recovery": "/recovery/status",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post("/wacc/calculate", response_model=CalculateResponse)
async def calculate(request: CalculateRequest, handler: HandlerDep) -> CalculateResponse:
    """
    Calculate WACC for the given inputs.

    Identical inputs are served from the result cache; concurrent identical
    requests share one computation.

    Args:
        request: Build-up components, cost of debt, weights and tax rate.

    Returns:
        WACC result with capital structure and timing.
    """
    return await handler.calculate(request)


@app.delete("/cache", response_model=dict[str, Any])
async def clear_cache(handler: HandlerDep) -> dict[str, Any]:
    """Clear all entries from the result cache."""
    return await handler.clear_cache()


@app.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(handler: HandlerDep) -> CacheStatsResponse:
    """Get result cache statistics."""
    return await handler.get_cache_stats()


@app.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    handler: HandlerDep,
    name: str | None = None,
    tag: str | None = None,
) -> MetricsResponse:
    """Get buffered metric events, optionally filtered by name or tag."""
    return await handler.get_metrics(name=name, tag=tag)


@app.get("/metrics/report", response_model=dict[str, Any])
async def get_report(
    handler: HandlerDep,
    period_minutes: float = Query(30, gt=0),
) -> dict[str, Any]:
    """Get a graded performance report for the last ``period_minutes``."""
    return await handler.get_report(period_minutes=period_minutes)


@app.get("/metrics/export")
async def export_metrics(
    handler: HandlerDep,
    fmt: Literal["json", "csv"] = "json",
) -> Response:
    """Export buffered metric events as JSON or CSV."""
    return await handler.export_metrics(fmt)


@app.get("/recovery/status", response_model=RecoveryStatusResponse)
async def get_recovery_status(handler: HandlerDep) -> RecoveryStatusResponse:
    """Get the state of the calculation boundary."""
    return await handler.get_recovery_status()


@app.post("/recovery/retry", response_model=RecoveryStatusResponse)
async def retry_recovery(handler: HandlerDep) -> RecoveryStatusResponse:
    """Run a manual recovery attempt for a faulted boundary."""
    return await handler.retry()


@app.post("/recovery/reset", response_model=RecoveryStatusResponse)
async def reset_recovery(handler: HandlerDep) -> RecoveryStatusResponse:
    """Reset the calculation boundary to stable."""
    return await handler.reset()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wacc_engine.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
