"""Tests for @traced and the telemetry switch."""

from __future__ import annotations

import time

import pytest
from structlog.testing import capture_logs

from tangleapi.services.result import ErrorCode, ServiceResult
from tangleapi.services.schema import MilestoneByIndexResponse
from tangleapi.services.telemetry import (
    Span,
    disable_telemetry,
    enable_telemetry,
    telemetry_enabled,
    traced,
)


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        assert Span(name="test").duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.005)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert isinstance(d["duration_ms"], float)


@traced("sample")
def _sample(ok: bool = True) -> ServiceResult[MilestoneByIndexResponse]:
    if ok:
        return ServiceResult.success("sample", MilestoneByIndexResponse())
    return ServiceResult.failure("sample", ErrorCode.NOT_FOUND, "nope")


@traced("explodes")
def _explodes() -> None:
    raise RuntimeError("boom")


class TestTraced:
    def test_no_meta_when_disabled(self) -> None:
        assert _sample().meta is None

    def test_meta_injected_when_enabled(self) -> None:
        enable_telemetry()
        result = _sample()
        assert result.meta is not None
        assert result.meta["telemetry"]["name"] == "sample"

    def test_failures_also_timed(self) -> None:
        enable_telemetry()
        result = _sample(ok=False)
        assert result.ok is False
        assert result.meta is not None
        assert "telemetry" in result.meta

    def test_logs_completion(self) -> None:
        with capture_logs() as logs:
            _sample(ok=False)
        entry = next(e for e in logs if e["event"] == "operation.complete")
        assert entry["op"] == "sample"
        assert entry["ok"] is False

    def test_exceptions_propagate(self) -> None:
        with capture_logs() as logs, pytest.raises(RuntimeError, match="boom"):
            _explodes()
        assert logs[0]["ok"] is False

    def test_non_result_passthrough(self) -> None:
        enable_telemetry()

        @traced("plain")
        def plain() -> int:
            return 7

        assert plain() == 7


class TestSwitch:
    def test_toggle(self) -> None:
        assert telemetry_enabled() is False
        enable_telemetry()
        assert telemetry_enabled() is True
        disable_telemetry()
        assert telemetry_enabled() is False
