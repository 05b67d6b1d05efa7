"""Failure record domain entity."""

import time
from dataclasses import dataclass, field
from enum import Enum


class FailureCategory(str, Enum):
    """Subsystem a fault is attributed to."""

    CACHE = "cache"
    TELEMETRY = "telemetry"
    HOST_INTEGRATION = "host-integration"
    CALCULATION = "calculation"
    UNCLASSIFIED = "unclassified"


class BoundaryState(str, Enum):
    """States of a protected boundary."""

    STABLE = "stable"
    FAULTED = "faulted"
    RECOVERING = "recovering"
    TERMINAL = "faulted-terminal"


@dataclass
class FailureRecord:
    """A caught fault and what was done about it.

    Mutated by the recovery orchestrator while it handles the fault.

    Attributes:
        category: Classification of the fault
        error_description: Human-readable description of the original error
        attempts: Recovery attempts made for this boundary when the record closed
        remediation_actions: Actions taken, in order
        error: The original exception
        occurred_at: Unix timestamp when the fault was caught
    """

    category: FailureCategory
    error_description: str
    attempts: int = 0
    remediation_actions: list[str] = field(default_factory=list)
    error: BaseException | None = None
    occurred_at: float = field(default_factory=time.time)
