"""进程内通知总线，连接运动判定与电源控制。"""

from __future__ import annotations

import collections
import datetime as dt
import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, DefaultDict, List, Mapping

logger = logging.getLogger(__name__)

ACTIVATE_MONITOR = "ACTIVATE_MONITOR"
DEACTIVATE_MONITOR = "DEACTIVATE_MONITOR"
MONITOR_ON = "MONITOR_ON"
MONITOR_OFF = "MONITOR_OFF"
MOTION_DETECTED = "MOTION_DETECTED"
MOTION_TIMEOUT = "MOTION_TIMEOUT"


@dataclass(frozen=True)
class Notification:
    """总线上传递的单条消息，发布后不可修改。"""

    name: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    sent_at: dt.datetime = field(default_factory=dt.datetime.now)


NotificationHandler = Callable[[Notification], None]


class NotificationBus:
    """按名称订阅/发布的消息总线。

    处理函数同步调用且不得阻塞；需要等待 IO 的订阅者应自行创建任务。
    单个处理函数抛出的异常只记录日志，不影响其他订阅者。
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[NotificationHandler]] = collections.defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, name: str, handler: NotificationHandler) -> None:
        with self._lock:
            self._handlers[name].append(handler)

    def unsubscribe(self, name: str, handler: NotificationHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(name)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def publish(self, name: str, payload: Mapping[str, Any] | None = None) -> Notification:
        notification = Notification(name=name, payload=MappingProxyType(dict(payload or {})))
        with self._lock:
            handlers = list(self._handlers.get(name, ()))

        logger.debug("发布通知 %s: %s", name, dict(notification.payload))
        for handler in handlers:
            try:
                handler(notification)
            except Exception:
                logger.exception("通知 %s 的处理函数执行失败", name)
        return notification
