"""摄像头采集循环：按固定间隔采集帧并交给差分引擎评分。"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable, Optional

from mirrorwake.adapters.vision.base import FrameSource, StreamConstraints
from mirrorwake.core.difference_engine import DifferenceEngine, DifferenceResult, Frame
from mirrorwake.errors import CameraAcquisitionError

logger = logging.getLogger(__name__)

DifferenceCallback = Callable[[DifferenceResult], None]
CaptureCallback = Callable[[Frame], None]

# 首次采集在间隔基础上额外等待的时间（秒）
FIRST_CAPTURE_EXTRA_DELAY = 0.01


class CameraDifferenceAdapter:
    """持有视频流与采集定时任务。

    每次采集结束后从"现在"起等待 capture_interval 再采集下一帧，
    负载较高时允许累积漂移。stop() 可重复调用，未启动时调用也安全。
    """

    def __init__(
        self,
        source: FrameSource,
        engine: DifferenceEngine,
        capture_interval: float = 0.1,
        constraints: Optional[StreamConstraints] = None,
        on_difference: Optional[DifferenceCallback] = None,
        on_capture: Optional[CaptureCallback] = None,
    ) -> None:
        self._source = source
        self._engine = engine
        self._capture_interval = capture_interval
        self._constraints = constraints or StreamConstraints()
        self._on_difference = on_difference
        self._on_capture = on_capture
        self._stream: Any = None
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def stream_ready(self) -> bool:
        return self._stream is not None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def engine(self) -> DifferenceEngine:
        return self._engine

    async def initialize(self) -> None:
        """申请视频流；失败时抛出 CameraAcquisitionError，不启动采集。"""

        if self._stream is not None:
            return
        logger.info("初始化视频流...")
        try:
            self._stream = await self._source.acquire(self._constraints)
        except CameraAcquisitionError:
            raise
        except Exception as exc:
            raise CameraAcquisitionError(f"初始化视频流失败: {exc}") from exc

    async def start(self) -> None:
        if self._stream is None:
            raise RuntimeError("视频流尚未初始化")
        if self._task is not None:
            return

        async def _loop() -> None:
            await asyncio.sleep(self._capture_interval + FIRST_CAPTURE_EXTRA_DELAY)
            while True:
                await self.capture_once()
                await asyncio.sleep(self._capture_interval)

        self._task = asyncio.create_task(_loop())
        logger.info("开始以 %.0f ms 间隔采集视频流", self._capture_interval * 1000)

    async def capture_once(self) -> Optional[DifferenceResult]:
        """采集并处理一帧；单次采集失败只记录日志。"""

        if self._stream is None:
            return None
        try:
            frame = await self._source.capture_frame(self._stream)
        except Exception as exc:
            logger.warning("采集帧失败: %s", exc)
            return None

        result = self._engine.process(frame)
        try:
            if result is not None and self._on_difference is not None:
                self._on_difference(result)
            if self._on_capture is not None:
                self._on_capture(frame)
        except Exception:
            logger.exception("处理采集结果失败")
        return result

    async def stop(self) -> None:
        task, self._task = self._task, None
        stream, self._stream = self._stream, None
        try:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        finally:
            self._engine.reset()
            if stream is not None:
                logger.info("停止视频流采集...")
                await self._source.release_stream(stream)

    async def __aenter__(self) -> "CameraDifferenceAdapter":
        await self.initialize()
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
