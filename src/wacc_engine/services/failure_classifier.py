"""Failure classification for protected boundaries.

Faults are attributed to a subsystem with an explicit precedence list:
cache, telemetry, host integration, calculation. Typed exceptions anywhere
in the cause chain win over text heuristics, so a ``ComputationFailure``
whose message mentions "cache" is still a calculation fault. The keyword
and module heuristic is only a fallback for foreign exceptions and is an
approximation, not a guaranteed-correct classifier.
"""

import os
import traceback
from collections.abc import Iterator
from dataclasses import dataclass

from wacc_engine.entities import FailureCategory
from wacc_engine.errors import (
    CacheFailure,
    CalculationError,
    HostIntegrationFailure,
    TelemetryFailure,
)

MAX_CHAIN_DEPTH = 16


@dataclass(frozen=True)
class ClassificationRule:
    """One entry of the precedence list.

    Attributes:
        category: Category assigned when the rule matches
        exception_types: Typed matches, checked before any text heuristic
        keywords: Lower-case substrings searched in the error message
        module_hints: Lower-case substrings searched in the file that raised
    """

    category: FailureCategory
    exception_types: tuple[type[BaseException], ...]
    keywords: tuple[str, ...] = ()
    module_hints: tuple[str, ...] = ()


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        FailureCategory.CACHE,
        (CacheFailure,),
        keywords=("cache", "storage"),
        module_hints=("result_cache",),
    ),
    ClassificationRule(
        FailureCategory.TELEMETRY,
        (TelemetryFailure,),
        keywords=("telemetry", "performance", "observer"),
        module_hints=("telemetry",),
    ),
    ClassificationRule(
        FailureCategory.HOST_INTEGRATION,
        (HostIntegrationFailure,),
        keywords=("excel", "office", "workbook", "worksheet", "host integration"),
        module_hints=("excel", "host_integration"),
    ),
    ClassificationRule(
        FailureCategory.CALCULATION,
        (CalculationError, ArithmeticError),
        keywords=("calculation", "wacc"),
        module_hints=("calculation_service",),
    ),
)

SUGGESTED_ACTIONS: dict[FailureCategory, tuple[str, ...]] = {
    FailureCategory.CACHE: (
        "Clear application cache",
        "Reset cache configuration",
        "Disable caching temporarily",
    ),
    FailureCategory.TELEMETRY: (
        "Disable performance monitoring",
        "Reset performance metrics",
        "Restart performance monitoring",
    ),
    FailureCategory.HOST_INTEGRATION: (
        "Reconnect to Excel",
        "Reset Excel integration",
        "Clear Excel worksheet cache",
    ),
    FailureCategory.CALCULATION: (
        "Reset calculation inputs",
        "Clear calculation cache",
        "Validate input data",
        "Use default values",
    ),
    FailureCategory.UNCLASSIFIED: (
        "Reset component state",
        "Clear component cache",
        "Refresh page",
    ),
}

DESCRIPTIONS: dict[FailureCategory, tuple[str, str]] = {
    FailureCategory.CACHE: (
        "Cache System Error",
        "There was an issue with the application cache. Data may not be saved properly.",
    ),
    FailureCategory.TELEMETRY: (
        "Performance Monitoring Error",
        "Performance monitoring encountered an issue. Application functionality is not affected.",
    ),
    FailureCategory.HOST_INTEGRATION: (
        "Excel Integration Error",
        "Excel integration failed. You may not be able to generate or read Excel files.",
    ),
    FailureCategory.CALCULATION: (
        "Calculation Engine Error",
        "WACC calculation failed. Please check your input data and try again.",
    ),
    FailureCategory.UNCLASSIFIED: (
        "Component Rendering Error",
        "A component failed to render properly. Some features may not be available.",
    ),
}


def _chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen and len(seen) < MAX_CHAIN_DEPTH:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _origin_file(exc: BaseException) -> str:
    frames = traceback.extract_tb(exc.__traceback__)
    return os.path.basename(frames[-1].filename).lower() if frames else ""


def classify(exc: BaseException) -> FailureCategory:
    """Attribute an exception to a subsystem.

    Args:
        exc: The caught exception

    Returns:
        The first category in precedence order that matches
    """
    chain = list(_chain(exc))

    for rule in CLASSIFICATION_RULES:
        if any(isinstance(link, rule.exception_types) for link in chain):
            return rule.category

    message = " ".join(str(link) for link in chain).lower()
    files = " ".join(_origin_file(link) for link in chain)
    for rule in CLASSIFICATION_RULES:
        if any(keyword in message for keyword in rule.keywords):
            return rule.category
        if any(hint in files for hint in rule.module_hints):
            return rule.category

    return FailureCategory.UNCLASSIFIED


def suggested_actions(category: FailureCategory, exc: BaseException | None = None) -> list[str]:
    """User-facing recovery suggestions for a category.

    Args:
        category: The fault category
        exc: The original exception, used to add message-specific hints

    Returns:
        Ordered list of suggestions
    """
    actions = list(SUGGESTED_ACTIONS[category])
    message = str(exc).lower() if exc is not None else ""

    if category is FailureCategory.CACHE and "storage" in message:
        actions.append("Clear local storage")
    if category is FailureCategory.HOST_INTEGRATION and ("network" in message or "connection" in message):
        actions.append("Check network connection")

    return actions


def describe(category: FailureCategory) -> tuple[str, str]:
    """Title and description shown for a fault category."""
    return DESCRIPTIONS[category]
