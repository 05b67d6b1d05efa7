"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from wacc_engine.config import configure_logging
from wacc_engine.handlers import WACCHandler
from wacc_engine.repositories import InMemoryResultCache, TelemetryRecorder
from wacc_engine.services import CalculationEngine, RecoveryOrchestrator

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> WACCHandler:
    """Dependency injection for WACCHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The WACCHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "wacc_handler", None)
    if handler is None:
        raise RuntimeError("WACCHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Repositories (result cache, telemetry recorder) - shared instances
    2. Services (engine, recovery orchestrator)
    3. Handler (HTTP endpoints) - stored in app.state.wacc_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Closes the orchestrator and removes all services from app.state
    """
    configure_logging()

    cache = InMemoryResultCache.create()
    telemetry = TelemetryRecorder.create()
    engine = CalculationEngine(cache=cache, telemetry=telemetry)
    orchestrator = RecoveryOrchestrator.create(
        cache=cache,
        telemetry=telemetry,
        name="calculation",
    )

    app.state.cache = cache
    app.state.telemetry = telemetry
    app.state.engine = engine
    app.state.orchestrator = orchestrator
    app.state.wacc_handler = WACCHandler(
        engine=engine,
        orchestrator=orchestrator,
        cache=cache,
        telemetry=telemetry,
    )

    logger.info(
        "WACC engine initialized (cache ttl=%ss, max entries=%d, monitoring=%s)",
        cache.ttl,
        cache.max_entries,
        telemetry.is_monitoring,
    )

    yield

    await orchestrator.close()
    telemetry.stop_monitoring()

    del app.state.wacc_handler
    del app.state.orchestrator
    del app.state.engine
    del app.state.telemetry
    del app.state.cache
    logger.info("WACC engine shut down")


# Type alias for cleaner dependency injection
HandlerDep = Annotated[WACCHandler, Depends(get_handler)]
