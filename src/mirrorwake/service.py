"""后台服务：把摄像头采集、运动判定与电源控制接到同一个事件循环上。"""

from __future__ import annotations

import asyncio
import contextlib
import datetime as dt
import logging
import signal
import threading
from dataclasses import dataclass
from typing import Optional

import uvicorn

from mirrorwake.adapters.power import ShellCommandExecutor
from mirrorwake.adapters.vision import (
    CameraDifferenceAdapter,
    FrameSource,
    OpenCVFrameSource,
    SimulatedFrameSource,
    StreamConstraints,
)
from mirrorwake.config import AppConfig
from mirrorwake.core.difference_engine import DifferenceEngine, DifferenceResult, MotionBox
from mirrorwake.core.motion_classifier import MotionClassifier, VisibilityController
from mirrorwake.core.notification_bus import NotificationBus
from mirrorwake.core.power_controller import CommandExecutor, MonitorState, PowerController
from mirrorwake.core.power_profiles import CommandProfile, select_profile
from mirrorwake.core.score_buffer import ScoreBuffer, ScoreRecord
from mirrorwake.errors import CameraAcquisitionError

logger = logging.getLogger(__name__)


@dataclass
class ServiceStatus:
    """供状态接口读取的服务快照。"""

    monitor_state: MonitorState
    monitor_off: bool
    operation_pending: bool
    operation_running: bool
    last_score: Optional[int]
    motion_box: Optional[MotionBox]
    seconds_since_motion: Optional[float]
    stream_ready: bool
    profile: str

    def to_dict(self) -> dict:
        box = self.motion_box
        return {
            "monitorState": self.monitor_state.value,
            "monitorOff": self.monitor_off,
            "operationPending": self.operation_pending,
            "operationRunning": self.operation_running,
            "lastScore": self.last_score,
            "motionBox": (
                None
                if box is None
                else {"xMin": box.x_min, "xMax": box.x_max, "yMin": box.y_min, "yMax": box.y_max}
            ),
            "secondsSinceMotion": self.seconds_since_motion,
            "streamReady": self.stream_ready,
            "profile": self.profile,
        }


def build_frame_source(config: AppConfig) -> FrameSource:
    if config.simulate_camera:
        logger.info("使用模拟摄像头")
        return SimulatedFrameSource()
    return OpenCVFrameSource(device_index=config.camera_index)


class MirrorWakeService:
    """组装各组件并管理其生命周期。"""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        source: Optional[FrameSource] = None,
        executor: Optional[CommandExecutor] = None,
        profile: Optional[CommandProfile] = None,
        visibility: Optional[VisibilityController] = None,
    ) -> None:
        self.config = config or AppConfig.load_default()
        self.bus = NotificationBus()
        self.scores = ScoreBuffer()
        self.profile = profile or select_profile(self.config.power_profile)
        self.controller = PowerController(
            self.profile,
            executor or ShellCommandExecutor(),
            bus=self.bus if self.config.use_power else None,
            check_state=self.config.check_state,
        )
        self.classifier = MotionClassifier(self.bus, self.config, visibility=visibility)
        self.engine = DifferenceEngine(
            width=self.config.difference_width,
            height=self.config.difference_height,
            pixel_threshold=self.config.pixel_threshold,
            score_threshold=self.config.score_threshold,
            include_motion_box=self.config.include_motion_box,
            include_motion_mask=self.config.include_motion_mask,
        )
        self.adapter = CameraDifferenceAdapter(
            source or build_frame_source(self.config),
            self.engine,
            capture_interval=self.config.capture_interval_seconds,
            constraints=StreamConstraints(
                width=self.config.capture_width,
                height=self.config.capture_height,
            ),
            on_difference=self._on_difference,
        )
        self._last_box: Optional[MotionBox] = None
        self._started = False

    async def start(self) -> None:
        """申请视频流并启动采集；视频流打不开时抛出 CameraAcquisitionError。"""

        if self._started:
            return
        self._started = True
        self.classifier.start()
        await self.adapter.initialize()
        await self.adapter.start()

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        try:
            await self.adapter.stop()
        finally:
            if self.config.use_power:
                await self.controller.shutdown()

    def status(self) -> ServiceStatus:
        last_motion = self.classifier.last_motion_detected
        since_motion = None
        if last_motion is not None:
            since_motion = round((dt.datetime.now() - last_motion).total_seconds(), 3)
        return ServiceStatus(
            monitor_state=self.controller.state,
            monitor_off=self.classifier.monitor_off,
            operation_pending=self.classifier.operation_pending,
            operation_running=self.controller.operation_running,
            last_score=self.classifier.last_score,
            motion_box=self._last_box,
            seconds_since_motion=since_motion,
            stream_ready=self.adapter.stream_ready,
            profile=self.profile.name,
        )

    def _on_difference(self, result: DifferenceResult) -> None:
        self.scores.append(
            ScoreRecord(timestamp=dt.datetime.now(), score=result.score, has_motion=result.has_motion)
        )
        if result.motion_box is not None:
            self._last_box = result.motion_box
        self.classifier.on_difference(result)


async def run_service(
    config: AppConfig,
    service: Optional[MirrorWakeService] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """运行服务直到收到终止信号；启用时同时提供状态接口。"""

    service = service or MirrorWakeService(config)
    stop_event = stop_event or asyncio.Event()

    if threading.current_thread() is threading.main_thread():

        def _handle_stop(*_: object) -> None:
            logger.info("收到终止信号，准备关闭服务…")
            stop_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _handle_stop)

    server_task: Optional[asyncio.Task[None]] = None
    try:
        try:
            await service.start()
        except CameraAcquisitionError as exc:
            logger.error("摄像头初始化失败，未启动采集: %s", exc)
            return

        if config.api_enabled:
            server_task = asyncio.create_task(_serve_api(service, stop_event))

        await stop_event.wait()
    finally:
        if server_task is not None:
            server_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await server_task
        await service.stop()


async def _serve_api(service: MirrorWakeService, stop_event: asyncio.Event) -> None:
    from mirrorwake.ui import create_app

    app = create_app(service)
    server_config = uvicorn.Config(
        app,
        host=service.config.api_host,
        port=service.config.api_port,
        reload=False,
        log_level=service.config.log_level.lower(),
    )
    server = uvicorn.Server(server_config)
    await server.serve()
    stop_event.set()
