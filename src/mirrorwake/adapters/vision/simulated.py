"""模拟帧来源，用于开发阶段与测试。"""

from __future__ import annotations

import asyncio
import itertools
import math
import random
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

import numpy as np

from mirrorwake.adapters.vision.base import FrameSource, StreamConstraints
from mirrorwake.core.difference_engine import Frame


@dataclass
class SimulatedStream:
    width: int
    height: int
    released: bool = False


class SimulatedFrameSource(FrameSource):
    """生成灰色背景上的移动亮块，便于测试数据流。

    `motion_pattern` 给定时按顺序决定每一帧是否产生运动，耗尽后保持静止；
    未给定时按缓慢变化的概率随机产生运动。
    """

    def __init__(
        self,
        motion_pattern: Optional[Iterable[bool]] = None,
        block_size: int = 8,
        seed: Optional[int] = None,
    ) -> None:
        self._pattern: Optional[Iterator[bool]] = iter(motion_pattern) if motion_pattern is not None else None
        self._block_size = block_size
        self._random = random.Random(seed)
        self._phase = 0.0
        self._position = (0, 0)
        self._counter = itertools.count()
        self.acquired = 0
        self.released = 0

    async def acquire(self, constraints: StreamConstraints) -> SimulatedStream:
        await asyncio.sleep(0)
        self.acquired += 1
        return SimulatedStream(width=constraints.width, height=constraints.height)

    async def capture_frame(self, stream: SimulatedStream) -> Frame:
        await asyncio.sleep(0)
        if stream.released:
            raise RuntimeError("视频流已释放")

        if self._next_motion():
            self._position = (
                self._random.randrange(0, max(1, stream.width - self._block_size)),
                self._random.randrange(0, max(1, stream.height - self._block_size)),
            )

        rgba = np.full((stream.height, stream.width, 4), 40, dtype=np.uint8)
        rgba[..., 3] = 255
        x, y = self._position
        rgba[y : y + self._block_size, x : x + self._block_size, :3] = 230
        return Frame.from_array(rgba, timestamp=float(next(self._counter)))

    async def release_stream(self, stream: SimulatedStream) -> None:
        if stream.released:
            return
        stream.released = True
        self.released += 1

    def _next_motion(self) -> bool:
        if self._pattern is not None:
            return next(self._pattern, False)

        # 模拟一个缓慢变化的运动概率
        chance = 0.5 + 0.4 * math.sin(self._phase)
        self._phase += 0.05
        return self._random.random() < chance
