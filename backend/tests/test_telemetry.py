from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from gymidle.proficiency import Grade
from gymidle.telemetry import TelemetryEvent, clear_listeners, emit_event, register_listener


def test_events_are_sanitized_for_listeners() -> None:
    captured: list[TelemetryEvent] = []
    register_listener(captured.append)
    try:
        emit_event(
            "daily_reset",
            user_id="lifter",
            game_day=date(2026, 3, 10),
            at=datetime(2026, 3, 10, 0, 0, tzinfo=timezone.utc),
            grade=Grade.PERFECT,
            tiers=(1, 2),
        )
    finally:
        clear_listeners()

    assert len(captured) == 1
    payload = captured[0].payload
    assert payload["game_day"] == "2026-03-10"
    assert payload["at"] == "2026-03-10T00:00:00+00:00"
    assert payload["grade"] == "perfect"
    assert payload["tiers"] == [1, 2]


def test_failing_listener_does_not_block_others(caplog) -> None:
    seen: list[str] = []

    def broken(event: TelemetryEvent) -> None:
        raise RuntimeError("listener down")

    register_listener(broken)
    register_listener(lambda event: seen.append(event.name))
    try:
        with caplog.at_level(logging.INFO, logger="gymidle.telemetry"):
            emit_event("level_up", level=2)
    finally:
        clear_listeners()

    assert seen == ["level_up"]
    assert "Telemetry listener failed for level_up" in caplog.text
    assert '"event": "level_up"' in caplog.text
