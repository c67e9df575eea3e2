"""基于 OpenCV 的摄像头帧来源。"""

from __future__ import annotations

import asyncio
import logging

import cv2  # type: ignore

from mirrorwake.adapters.vision.base import FrameSource, StreamConstraints
from mirrorwake.core.difference_engine import Frame
from mirrorwake.errors import CameraAcquisitionError

logger = logging.getLogger(__name__)


class OpenCVFrameSource(FrameSource):
    """通过 cv2.VideoCapture 读取摄像头，阻塞调用放到线程池执行。"""

    def __init__(self, device_index: int = 0) -> None:
        self.device_index = device_index
        self._size = (640, 480)

    async def acquire(self, constraints: StreamConstraints) -> cv2.VideoCapture:
        loop = asyncio.get_running_loop()
        self._size = (constraints.width, constraints.height)
        logger.info("正在打开摄像头 %s ...", self.device_index)
        return await loop.run_in_executor(None, self._open, constraints)

    async def capture_frame(self, stream: cv2.VideoCapture) -> Frame:
        loop = asyncio.get_running_loop()
        ret, frame = await loop.run_in_executor(None, stream.read)
        if not ret:
            raise RuntimeError("摄像头读取失败")

        if (frame.shape[1], frame.shape[0]) != self._size:
            frame = cv2.resize(frame, self._size, interpolation=cv2.INTER_AREA)
        rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
        return Frame.from_array(rgba, timestamp=loop.time())

    async def release_stream(self, stream: cv2.VideoCapture) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, stream.release)
        logger.info("摄像头已释放")

    def _open(self, constraints: StreamConstraints) -> cv2.VideoCapture:
        capture = cv2.VideoCapture(self.device_index)
        if not capture.isOpened():
            capture.release()
            raise CameraAcquisitionError("无法打开摄像头，请检查权限或设备连接")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)
        return capture
