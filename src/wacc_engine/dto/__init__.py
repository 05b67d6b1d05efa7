"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import CalculateRequest, ComponentItem
from .responses import (
    CacheStatsResponse,
    CalculateResponse,
    CapitalStructureItem,
    FailureDetail,
    HealthCheckResponse,
    MetricItem,
    MetricsResponse,
    RecoveryStatusResponse,
)

__all__ = [
    "CalculateRequest",
    "ComponentItem",
    "CalculateResponse",
    "CapitalStructureItem",
    "MetricItem",
    "MetricsResponse",
    "CacheStatsResponse",
    "FailureDetail",
    "RecoveryStatusResponse",
    "HealthCheckResponse",
]
