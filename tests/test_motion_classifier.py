"""运动判定单元测试。"""

from __future__ import annotations

import datetime as dt

import numpy as np

from mirrorwake.config import AppConfig
from mirrorwake.core.difference_engine import DifferenceResult, Frame
from mirrorwake.core.motion_classifier import MotionClassifier
from mirrorwake.core.notification_bus import (
    ACTIVATE_MONITOR,
    DEACTIVATE_MONITOR,
    MONITOR_OFF,
    MONITOR_ON,
    MOTION_DETECTED,
    MOTION_TIMEOUT,
    NotificationBus,
)


def _fixed_now() -> dt.datetime:
    return dt.datetime(2024, 1, 1, 12, 0, 0)


def _config(**overrides) -> AppConfig:
    values = {"score_threshold": 16, "display_timeout_seconds": 120.0}
    values.update(overrides)
    return AppConfig(**values)


def _result(score: int) -> DifferenceResult:
    blank = np.zeros((2, 2, 4), dtype=np.uint8)
    return DifferenceResult(
        score=score,
        has_motion=score >= 16,
        frame=Frame.from_array(blank, 0.0),
        difference_image=blank,
    )


def _record(bus: NotificationBus) -> list:
    events: list = []
    for name in (ACTIVATE_MONITOR, DEACTIVATE_MONITOR, MOTION_DETECTED, MOTION_TIMEOUT):
        bus.subscribe(name, events.append)
    return events


def _names(events: list) -> list[str]:
    return [e.name for e in events]


class _Visibility:
    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    def show(self) -> None:
        self.calls.append(("show", 0))

    def hide(self, fadeout_ms: int) -> None:
        self.calls.append(("hide", fadeout_ms))


def _classifier_with_monitor_off(bus: NotificationBus, **overrides) -> MotionClassifier:
    classifier = MotionClassifier(bus, _config(**overrides))
    classifier.start(now=_fixed_now())
    bus.publish(MONITOR_OFF, {"monitorState": "OFF", "duration": 5})
    return classifier


def test_motion_while_off_requests_activation_once() -> None:
    bus = NotificationBus()
    classifier = _classifier_with_monitor_off(bus, use_power=True)
    events = _record(bus)
    now = _fixed_now() + dt.timedelta(seconds=1)

    classifier.on_difference(_result(40), now=now)

    assert _names(events) == [ACTIVATE_MONITOR, MOTION_DETECTED]
    assert events[0].payload["checkState"] is True
    assert classifier.operation_pending is True
    assert classifier.last_motion_detected == now

    classifier.on_difference(_result(40), now=now + dt.timedelta(seconds=1))

    assert _names(events) == [ACTIVATE_MONITOR, MOTION_DETECTED]
    assert classifier.last_motion_detected == now + dt.timedelta(seconds=1)


def test_confirmation_clears_pending_flag() -> None:
    bus = NotificationBus()
    classifier = _classifier_with_monitor_off(bus)
    classifier.on_difference(_result(40), now=_fixed_now())

    bus.publish(MONITOR_ON, {"monitorState": "ON", "duration": 12})

    assert classifier.operation_pending is False
    assert classifier.monitor_off is False


def test_score_equal_to_threshold_is_not_motion() -> None:
    bus = NotificationBus()
    classifier = _classifier_with_monitor_off(bus)
    events = _record(bus)

    classifier.on_difference(_result(16), now=_fixed_now())

    assert events == []
    assert classifier.operation_pending is False


def test_no_motion_while_off_does_nothing() -> None:
    bus = NotificationBus()
    classifier = _classifier_with_monitor_off(bus)
    events = _record(bus)

    classifier.on_difference(_result(0), now=_fixed_now() + dt.timedelta(hours=1))

    assert events == []
    assert classifier.monitor_off is True


def test_timeout_requests_deactivation() -> None:
    bus = NotificationBus()
    classifier = MotionClassifier(bus, _config(check_state=False))
    classifier.start(now=_fixed_now())
    events = _record(bus)

    classifier.on_difference(_result(0), now=_fixed_now() + dt.timedelta(seconds=120))
    assert events == []

    classifier.on_difference(_result(0), now=_fixed_now() + dt.timedelta(seconds=121))

    assert _names(events) == [DEACTIVATE_MONITOR, MOTION_TIMEOUT]
    assert events[0].payload["checkState"] is False
    assert classifier.operation_pending is True


def test_pending_request_suppresses_timeout() -> None:
    bus = NotificationBus()
    classifier = MotionClassifier(bus, _config())
    classifier.start(now=_fixed_now())
    events = _record(bus)

    for seconds in (121, 150, 300):
        classifier.on_difference(_result(0), now=_fixed_now() + dt.timedelta(seconds=seconds))

    assert _names(events) == [DEACTIVATE_MONITOR, MOTION_TIMEOUT]


def test_motion_resets_timeout() -> None:
    bus = NotificationBus()
    classifier = MotionClassifier(bus, _config())
    classifier.start(now=_fixed_now())
    events = _record(bus)

    classifier.on_difference(_result(50), now=_fixed_now() + dt.timedelta(seconds=100))
    classifier.on_difference(_result(0), now=_fixed_now() + dt.timedelta(seconds=200))

    assert events == []


def test_start_requests_activation_in_power_mode() -> None:
    bus = NotificationBus()
    events: list = []
    bus.subscribe(ACTIVATE_MONITOR, events.append)

    MotionClassifier(bus, _config(check_state=False)).start(now=_fixed_now())

    assert len(events) == 1
    assert events[0].payload["checkState"] is True


def test_visibility_path_without_power_control() -> None:
    bus = NotificationBus()
    visibility = _Visibility()
    classifier = MotionClassifier(bus, _config(use_power=False, fadeout_ms=500), visibility=visibility)
    events = _record(bus)
    classifier.start(now=_fixed_now())

    classifier.on_difference(_result(0), now=_fixed_now() + dt.timedelta(seconds=121))

    assert visibility.calls == [("hide", 500)]
    assert classifier.monitor_off is True
    assert classifier.operation_pending is False

    classifier.on_difference(_result(0), now=_fixed_now() + dt.timedelta(seconds=122))
    classifier.on_difference(_result(30), now=_fixed_now() + dt.timedelta(seconds=123))

    assert visibility.calls == [("hide", 500), ("hide", 0), ("show", 0)]
    assert classifier.monitor_off is False
    assert _names(events) == [MOTION_TIMEOUT, MOTION_DETECTED]
