"""视频帧来源接口。"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any

from mirrorwake.core.difference_engine import Frame


@dataclass(frozen=True)
class StreamConstraints:
    """申请视频流时的期望尺寸。"""

    width: int = 640
    height: int = 480
    audio: bool = False


class FrameSource(abc.ABC):
    """摄像头帧来源抽象类：申请流、逐帧采集、释放流。"""

    @abc.abstractmethod
    async def acquire(self, constraints: StreamConstraints) -> Any:
        """打开视频流，失败时抛出 CameraAcquisitionError。"""

        raise NotImplementedError

    @abc.abstractmethod
    async def capture_frame(self, stream: Any) -> Frame:
        """从已打开的流中采集一帧。"""

        raise NotImplementedError

    @abc.abstractmethod
    async def release_stream(self, stream: Any) -> None:
        """释放视频流，重复调用应当无副作用。"""

        raise NotImplementedError
