"""运动判定：根据差分得分决定何时请求开启或关闭显示器。"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Optional, Protocol

from mirrorwake.config import AppConfig
from mirrorwake.core.difference_engine import DifferenceResult
from mirrorwake.core.notification_bus import (
    ACTIVATE_MONITOR,
    DEACTIVATE_MONITOR,
    MONITOR_OFF,
    MONITOR_ON,
    MOTION_DETECTED,
    MOTION_TIMEOUT,
    Notification,
    NotificationBus,
)

logger = logging.getLogger(__name__)


class VisibilityController(Protocol):
    """不使用电源控制时，用于显示/隐藏界面的外部协作者。"""

    def show(self) -> None:
        """立即显示。"""

    def hide(self, fadeout_ms: int) -> None:
        """在 fadeout_ms 内淡出隐藏。"""


class MotionClassifier:
    """把差分得分转换为运动信号，并在超时后请求熄屏。

    `operation_pending` 只会被 `MONITOR_ON` / `MONITOR_OFF` 确认清除；
    请求在途期间到达的新事件直接丢弃而不是排队。
    """

    def __init__(
        self,
        bus: NotificationBus,
        config: Optional[AppConfig] = None,
        visibility: Optional[VisibilityController] = None,
    ) -> None:
        self._bus = bus
        self._config = config or AppConfig.load_default()
        self._visibility = visibility
        self._display_timeout = dt.timedelta(seconds=self._config.display_timeout_seconds)
        self._last_motion_detected: Optional[dt.datetime] = None
        self._operation_pending = False
        self._monitor_off = False
        self._last_score: Optional[int] = None

        bus.subscribe(MONITOR_ON, self.handle_notification)
        bus.subscribe(MONITOR_OFF, self.handle_notification)

    @property
    def operation_pending(self) -> bool:
        return self._operation_pending

    @property
    def monitor_off(self) -> bool:
        return self._monitor_off

    @property
    def last_motion_detected(self) -> Optional[dt.datetime]:
        return self._last_motion_detected

    @property
    def last_score(self) -> Optional[int]:
        return self._last_score

    def start(self, now: Optional[dt.datetime] = None) -> None:
        """以启动时刻作为最近一次运动时间，并确保显示器处于开启状态。"""

        self._last_motion_detected = now or self._now()
        if self._config.use_power:
            self._bus.publish(ACTIVATE_MONITOR, {"checkState": True})

    def on_difference(self, result: DifferenceResult, now: Optional[dt.datetime] = None) -> None:
        now = now or self._now()
        if self._last_motion_detected is None:
            self._last_motion_detected = now

        self._last_score = result.score
        motion_detected = result.score > self._config.score_threshold
        if motion_detected:
            self._last_motion_detected = now

        if self._operation_pending:
            logger.warning("上一次电源操作仍在进行中...")
            return

        if self._monitor_off:
            if motion_detected:
                self._wake(result.score)
            elif not self._config.use_power and self._visibility is not None:
                self._visibility.hide(0)
            return

        elapsed = now - self._last_motion_detected
        if elapsed > self._display_timeout:
            self._sleep(elapsed)

    def handle_notification(self, notification: Notification) -> None:
        payload = notification.payload
        if notification.name == MONITOR_ON:
            self._monitor_off = False
        elif notification.name == MONITOR_OFF:
            self._monitor_off = True
        else:
            return
        logger.info(
            "%s - 显示器状态:%s 耗时 %s ms",
            notification.name,
            payload.get("monitorState"),
            payload.get("duration"),
        )
        self._operation_pending = False

    def _wake(self, score: int) -> None:
        logger.info("检测到运动，得分 %s", score)
        if self._config.use_power:
            self._operation_pending = True
            self._bus.publish(ACTIVATE_MONITOR, {"checkState": self._config.check_state})
        else:
            if self._visibility is not None:
                self._visibility.show()
            self._monitor_off = False
        self._bus.publish(MOTION_DETECTED, {"score": score})

    def _sleep(self, elapsed: dt.timedelta) -> None:
        logger.info(
            "已超过 %s 秒未检测到运动 (%.1f 秒)",
            self._config.display_timeout_seconds,
            elapsed.total_seconds(),
        )
        if self._config.use_power:
            self._operation_pending = True
            self._bus.publish(DEACTIVATE_MONITOR, {"checkState": self._config.check_state})
        else:
            if self._visibility is not None:
                self._visibility.hide(self._config.fadeout_ms)
            self._monitor_off = True
        self._bus.publish(MOTION_TIMEOUT, {})

    def _now(self) -> dt.datetime:
        return dt.datetime.now()
