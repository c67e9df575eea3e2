"""显示器电源控制：查询/开启/关闭，并保证同一时刻只有一个电源操作。"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from mirrorwake.core.notification_bus import (
    ACTIVATE_MONITOR,
    DEACTIVATE_MONITOR,
    MONITOR_OFF,
    MONITOR_ON,
    Notification,
    NotificationBus,
)
from mirrorwake.core.power_profiles import CommandProfile

logger = logging.getLogger(__name__)


class MonitorState(Enum):
    ON = "ON"
    OFF = "OFF"


@dataclass(frozen=True)
class CommandOutcome:
    """一次外部命令的执行结果，`error` 非空表示失败。"""

    error: Optional[BaseException]
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


class CommandExecutor(Protocol):
    """执行一条 shell 命令，只尝试一次，不自动重试。"""

    async def run(self, command_line: str) -> CommandOutcome:
        """执行命令并返回结果。"""


@dataclass(frozen=True)
class AsyncOperationResult:
    """单次电源操作的结果与起止时间。

    `result` 为操作完成后显示器是否开启；操作失败时状态未知，为 None。
    """

    success: bool
    started_at: dt.datetime
    ended_at: dt.datetime
    result: Optional[bool] = None

    @property
    def duration_ms(self) -> float:
        return (self.ended_at - self.started_at).total_seconds() * 1000.0


class PowerController:
    """持有显示器电源状态，串行执行电源切换命令。

    初始状态假定为开启，直到一次成功的查询给出实际结果。
    通过总线收到的开/关请求在已有操作进行时直接丢弃（不排队）；
    成功完成后回发 `MONITOR_ON` / `MONITOR_OFF`，失败时只记录日志。
    """

    def __init__(
        self,
        profile: CommandProfile,
        executor: CommandExecutor,
        bus: Optional[NotificationBus] = None,
        check_state: bool = True,
    ) -> None:
        self._profile = profile
        self._executor = executor
        self._bus = bus
        self._check_state = check_state
        self._state = MonitorState.ON
        self._operation_running = False
        self._task: Optional[asyncio.Task[None]] = None

        if bus is not None:
            bus.subscribe(ACTIVATE_MONITOR, self.handle_notification)
            bus.subscribe(DEACTIVATE_MONITOR, self.handle_notification)

    @property
    def profile(self) -> CommandProfile:
        return self._profile

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def operation_running(self) -> bool:
        return self._operation_running

    async def query_state(self) -> AsyncOperationResult:
        """查询显示器是否开启；命令失败时跳过解析，`result` 为 None。"""

        started_at = self._now()
        logger.info("查询显示器电源状态...")
        outcome = await self._execute(self._profile.query_command)
        ended_at = self._now()
        if not outcome.ok:
            logger.error("查询显示器状态失败: %s", outcome.stderr.strip() or outcome.error)
            return AsyncOperationResult(success=False, started_at=started_at, ended_at=ended_at)

        is_on = self._profile.is_on(outcome.stdout)
        logger.info("显示器当前状态: %s", outcome.stdout.strip())
        self._state = MonitorState.ON if is_on else MonitorState.OFF
        return AsyncOperationResult(success=True, started_at=started_at, ended_at=ended_at, result=is_on)

    async def activate(self, check_state_first: bool) -> AsyncOperationResult:
        return await self._transition(MonitorState.ON, check_state_first)

    async def deactivate(self, check_state_first: bool) -> AsyncOperationResult:
        return await self._transition(MonitorState.OFF, check_state_first)

    def handle_notification(self, notification: Notification) -> bool:
        """处理总线上的开/关请求，返回请求是否被接受。"""

        if notification.name == ACTIVATE_MONITOR:
            target = MonitorState.ON
        elif notification.name == DEACTIVATE_MONITOR:
            target = MonitorState.OFF
        else:
            return False
        check_state = bool(notification.payload.get("checkState", self._check_state))
        return self.request_transition(target, check_state)

    def request_transition(self, target: MonitorState, check_state: Optional[bool] = None) -> bool:
        if self._operation_running:
            logger.warning("已有电源操作正在进行，忽略切换到 %s 的请求", target.value)
            return False

        check_state = self._check_state if check_state is None else check_state
        logger.info(
            "切换显示器到 %s - 命令方案:%s 检查状态:%s",
            target.value,
            self._profile.name,
            check_state,
        )
        self._operation_running = True
        self._task = asyncio.get_running_loop().create_task(self._run_transition(target, check_state))
        return True

    async def wait_idle(self) -> None:
        """等待当前电源操作结束（如果有）。"""

        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def shutdown(self) -> None:
        """退出前重新开启显示器，避免屏幕停留在关闭状态。"""

        await self.wait_idle()
        self._operation_running = True
        try:
            result = await self.activate(check_state_first=True)
        finally:
            self._operation_running = False
        if not result.success or not result.result:
            logger.error("退出时重新开启显示器失败")
        logger.info("退出前的电源检查耗时 %.0f ms", result.duration_ms)

    async def _run_transition(self, target: MonitorState, check_state: bool) -> None:
        try:
            result = await self._transition(target, check_state)
            if result.success:
                duration = round(result.duration_ms)
                if self._bus is not None:
                    message = MONITOR_ON if target is MonitorState.ON else MONITOR_OFF
                    self._bus.publish(message, {"monitorState": target.value, "duration": duration})
                logger.info("显示器切换到 %s 耗时 %s ms", target.value, duration)
            else:
                logger.error("显示器切换到 %s 失败", target.value)
        finally:
            self._operation_running = False

    async def _transition(self, target: MonitorState, check_state_first: bool) -> AsyncOperationResult:
        started_at = self._now()
        if check_state_first:
            probe = await self.query_state()
            logger.info("显示器电源检查耗时 %.0f ms", probe.duration_ms)
            if probe.success and probe.result == (target is MonitorState.ON):
                logger.info("显示器已处于 %s 状态", target.value)
                return AsyncOperationResult(
                    success=True,
                    started_at=started_at,
                    ended_at=self._now(),
                    result=target is MonitorState.ON,
                )
        else:
            logger.info("跳过显示器状态检查")

        command = self._profile.on_command if target is MonitorState.ON else self._profile.off_command
        outcome = await self._execute(command)
        ended_at = self._now()
        if not outcome.ok:
            logger.error("切换显示器到 %s 出错: %s", target.value, outcome.stderr.strip() or outcome.error)
            return AsyncOperationResult(success=False, started_at=started_at, ended_at=ended_at)

        self._state = target
        logger.info("显示器已切换到 %s", target.value)
        return AsyncOperationResult(
            success=True,
            started_at=started_at,
            ended_at=ended_at,
            result=target is MonitorState.ON,
        )

    async def _execute(self, command_line: str) -> CommandOutcome:
        try:
            return await self._executor.run(command_line)
        except Exception as exc:
            return CommandOutcome(error=exc)

    def _now(self) -> dt.datetime:
        return dt.datetime.now()

