"""
Tests for failure classification.
"""

import pytest

from wacc_engine.entities import FailureCategory
from wacc_engine.errors import (
    CacheFailure,
    ComputationFailure,
    HostIntegrationFailure,
    InvalidInputError,
    TelemetryFailure,
)
from wacc_engine.services import classify, describe, suggested_actions


def raised(exc: BaseException) -> BaseException:
    """Raise and catch an exception so it carries a traceback."""
    try:
        raise exc
    except BaseException as caught:
        return caught


@pytest.mark.parametrize(
    ("exc", "category"),
    [
        (CacheFailure("lookup failed"), FailureCategory.CACHE),
        (TelemetryFailure("sink failed"), FailureCategory.TELEMETRY),
        (HostIntegrationFailure("range write failed"), FailureCategory.HOST_INTEGRATION),
        (ComputationFailure("overflow"), FailureCategory.CALCULATION),
        (InvalidInputError("tax_rate", "out of range"), FailureCategory.CALCULATION),
        (ZeroDivisionError("float division by zero"), FailureCategory.CALCULATION),
    ],
)
def test_typed_exceptions(exc, category):
    """Test typed matches map directly to their subsystem."""
    assert classify(raised(exc)) is category


def test_typed_match_beats_keywords():
    """Test a calculation error mentioning the cache stays a calculation fault."""
    exc = raised(ComputationFailure("WACC calculation failed while reading cache"))

    assert classify(exc) is FailureCategory.CALCULATION


def test_precedence_follows_rule_order():
    """Test cache outranks calculation when both appear in the chain."""
    try:
        try:
            raise ComputationFailure("arithmetic failed")
        except ComputationFailure as inner:
            raise CacheFailure("could not store result") from inner
    except CacheFailure as outer:
        exc = outer

    assert classify(exc) is FailureCategory.CACHE


def test_cause_chain_is_searched():
    """Test a wrapped typed error is still recognized."""
    try:
        try:
            raise TelemetryFailure("buffer unavailable")
        except TelemetryFailure as inner:
            raise RuntimeError("operation failed") from inner
    except RuntimeError as outer:
        exc = outer

    assert classify(exc) is FailureCategory.TELEMETRY


@pytest.mark.parametrize(
    ("message", "category"),
    [
        ("Quota exceeded in local storage", FailureCategory.CACHE),
        ("Performance observer disconnected", FailureCategory.TELEMETRY),
        ("Excel range is not available", FailureCategory.HOST_INTEGRATION),
        ("Office.js is not loaded", FailureCategory.HOST_INTEGRATION),
        ("WACC result is inconsistent", FailureCategory.CALCULATION),
        ("Unexpected token in JSON", FailureCategory.UNCLASSIFIED),
    ],
)
def test_keyword_fallback(message, category):
    """Test foreign exceptions are classified by message keywords."""
    assert classify(raised(RuntimeError(message))) is category


def test_keyword_precedence():
    """Test a message matching two categories takes the earlier one."""
    exc = raised(RuntimeError("cache write failed during calculation"))

    assert classify(exc) is FailureCategory.CACHE


def test_localhost_is_not_host_integration():
    """Test the host keyword does not match unrelated URLs."""
    exc = raised(ConnectionError("connection refused by localhost"))

    assert classify(exc) is FailureCategory.UNCLASSIFIED


def test_suggested_actions_add_message_hints():
    """Test extra suggestions for storage and network problems."""
    storage = suggested_actions(FailureCategory.CACHE, RuntimeError("storage full"))
    network = suggested_actions(
        FailureCategory.HOST_INTEGRATION,
        RuntimeError("network connection lost"),
    )

    assert storage[0] == "Clear application cache"
    assert storage[-1] == "Clear local storage"
    assert network[-1] == "Check network connection"
    assert "Clear local storage" not in suggested_actions(FailureCategory.CACHE)


def test_every_category_is_described():
    """Test every category has a title, description and suggestions."""
    for category in FailureCategory:
        title, description = describe(category)
        assert title
        assert description
        assert suggested_actions(category)

    assert describe(FailureCategory.CALCULATION)[0] == "Calculation Engine Error"
