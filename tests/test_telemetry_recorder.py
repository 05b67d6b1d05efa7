"""
Tests for the telemetry recorder.
"""

import csv
import io
import json

import pytest

from wacc_engine.entities import MetricEvent
from wacc_engine.repositories import TelemetryRecorder, TelemetrySink


def make_event(name: str = "wacc-calculation", value: float = 1.0, timestamp: float = 1000.0) -> MetricEvent:
    return MetricEvent(name=name, value=value, timestamp=timestamp, tags=frozenset({"calculation"}))


def test_satisfies_protocol(recorder):
    """Test TelemetryRecorder implements TelemetrySink structurally."""
    assert isinstance(recorder, TelemetrySink)


def test_starts_stopped_without_autostart():
    """Test a new recorder drops events until started."""
    recorder = TelemetryRecorder(buffer_size=10)

    recorder.record_metric(make_event())

    assert recorder.is_monitoring is False
    assert recorder.get_metrics() == ()


def test_records_while_monitoring(recorder):
    """Test events are buffered oldest first."""
    recorder.record_metric(make_event(value=1.0))
    recorder.record_metric(make_event(value=2.0))

    assert [e.value for e in recorder.get_metrics()] == [1.0, 2.0]


def test_events_dropped_after_stop(recorder):
    """Test stopping keeps the buffer but drops new events."""
    recorder.record_metric(make_event())
    recorder.stop_monitoring()
    recorder.record_metric(make_event())

    assert len(recorder.get_metrics()) == 1

    recorder.start_monitoring()
    recorder.record_metric(make_event())
    assert len(recorder.get_metrics()) == 2


def test_buffer_drops_oldest_when_full():
    """Test the ring buffer keeps the newest events."""
    recorder = TelemetryRecorder.create(buffer_size=3, autostart=True)

    for value in range(5):
        recorder.record_metric(make_event(value=float(value)))

    assert [e.value for e in recorder.get_metrics()] == [2.0, 3.0, 4.0]
    assert recorder.dropped_count == 2


def test_get_metrics_filters_by_name_and_tag(recorder):
    """Test name and tag filters."""
    recorder.record("wacc-calculation", 1.5, tags=("calculation", "wacc"))
    recorder.record("error-boundary-catch", 1, tags=("error", "boundary"))

    assert [e.name for e in recorder.get_metrics(name="wacc-calculation")] == ["wacc-calculation"]
    assert [e.name for e in recorder.get_metrics(tag="error")] == ["error-boundary-catch"]
    assert recorder.get_metrics(name="wacc-calculation", tag="error") == ()


def test_record_stamps_time_from_clock(clock):
    """Test record() uses the injected clock."""
    recorder = TelemetryRecorder(buffer_size=10, clock=clock)
    recorder.start_monitoring()

    recorder.record("custom", 3, metadata={"k": "v"})

    (event,) = recorder.get_metrics()
    assert event.timestamp == clock.now
    assert event.value == 3.0
    assert event.metadata == {"k": "v"}


def test_record_drops_malformed_value(recorder):
    """Test a non-numeric value is dropped instead of raised."""
    recorder.record("custom", "not a number")  # type: ignore[arg-type]

    assert recorder.get_metrics() == ()


def test_record_drops_value_too_large_for_float(recorder):
    """Test an integer beyond float range is dropped instead of raised."""
    recorder.record("custom", 10**400)

    assert recorder.get_metrics() == ()


def test_record_survives_failing_clock():
    """Test a clock that raises does not escape record()."""

    def broken_clock():
        raise RuntimeError("clock unavailable")

    recorder = TelemetryRecorder(buffer_size=10, clock=broken_clock)
    recorder.start_monitoring()

    recorder.record("custom", 1.0)

    assert recorder.get_metrics() == ()


def test_mark_start_and_end(recorder):
    """Test timing pairs record a start and a duration."""
    recorder.mark_start("calculation")
    duration = recorder.mark_end("calculation", metadata={"phase": "test"})

    assert duration >= 0
    names = [e.name for e in recorder.get_metrics()]
    assert names == ["calculation-start", "calculation"]
    assert recorder.get_metrics(name="calculation")[0].metadata == {"phase": "test"}


def test_mark_end_without_start(recorder):
    """Test mark_end returns 0 when nothing was started."""
    assert recorder.mark_end("missing") == 0.0
    assert recorder.get_metrics() == ()


def test_mark_start_ignored_while_stopped(recorder):
    """Test a start marked while stopped is not kept for a later mark_end."""
    recorder.stop_monitoring()
    recorder.mark_start("calculation")
    recorder.start_monitoring()

    assert recorder.mark_end("calculation") == 0.0
    assert recorder.get_metrics() == ()


def test_clear_metrics(recorder):
    """Test clear_metrics empties the buffer."""
    recorder.record_metric(make_event())
    recorder.record_metric(make_event())

    assert recorder.clear_metrics() == 2
    assert recorder.get_metrics() == ()


def test_export_json(recorder):
    """Test JSON export round-trips event fields."""
    recorder.record_metric(make_event(value=2.5))

    exported = json.loads(recorder.export_metrics("json"))

    assert exported == [
        {
            "name": "wacc-calculation",
            "value": 2.5,
            "timestamp": 1000.0,
            "metadata": {},
            "tags": ["calculation"],
        }
    ]


def test_export_csv(recorder):
    """Test CSV export has a header and one row per event."""
    recorder.record_metric(
        MetricEvent(
            name="wacc-calculation",
            value=1.25,
            timestamp=0.0,
            metadata={"cache_hit": True},
            tags=frozenset({"wacc", "calculation"}),
        )
    )

    rows = list(csv.reader(io.StringIO(recorder.export_metrics("csv"))))

    assert rows[0] == ["timestamp", "name", "value", "metadata", "tags"]
    assert rows[1][0] == "1970-01-01T00:00:00+00:00"
    assert rows[1][1:3] == ["wacc-calculation", "1.25"]
    assert json.loads(rows[1][3]) == {"cache_hit": True}
    assert rows[1][4] == "calculation;wacc"


def test_export_rejects_unknown_format(recorder):
    """Test unsupported formats raise ValueError."""
    with pytest.raises(ValueError, match="Unsupported export format"):
        recorder.export_metrics("xml")


def test_get_stats(recorder):
    """Test recorder statistics."""
    recorder.record_metric(make_event())

    stats = recorder.get_stats()

    assert stats["monitoring"] is True
    assert stats["buffered_events"] == 1
    assert stats["buffer_size"] == 1000
    assert stats["dropped_events"] == 0
