"""Deterministic cache keys for input snapshots."""

import hashlib
import json

from wacc_engine.entities import InputSnapshot

FINGERPRINT_PREFIX = "wacc-"


def _normalize(value: float) -> str:
    # -0.0 and 0.0 compare equal, so they must hash equal too
    number = float(value)
    if number == 0.0:
        number = 0.0
    return repr(number)


def canonical_form(snapshot: InputSnapshot) -> str:
    """Serialize a snapshot's field values in a fixed, order-sensitive layout.

    Args:
        snapshot: The snapshot to serialize

    Returns:
        Canonical JSON string
    """
    payload = [
        [[item.name, _normalize(item.value)] for item in snapshot.build_up],
        [[item.name, _normalize(item.value)] for item in snapshot.cost_of_debt],
        _normalize(snapshot.weight_of_debt),
        _normalize(snapshot.weight_of_equity),
        _normalize(snapshot.tax_rate),
        snapshot.mode.value,
    ]
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def fingerprint(snapshot: InputSnapshot) -> str:
    """Compute the cache key for a snapshot.

    Field-wise equal snapshots (including component order) produce the
    same fingerprint.

    Args:
        snapshot: The snapshot to fingerprint

    Returns:
        ``wacc-`` followed by a SHA-256 hex digest
    """
    digest = hashlib.sha256(canonical_form(snapshot).encode("utf-8")).hexdigest()
    return f"{FINGERPRINT_PREFIX}{digest}"
