"""基于帧差分的运动评分。

每个采集周期把当前帧缩放到差分尺寸，与上一帧做 "difference" 混合，
再按亮度加权得到逐像素差值：

    d = 0.3 * ΔR + 0.6 * ΔG + 0.1 * ΔB

`d >= pixel_threshold` 的像素计为运动像素，运动像素总数即为得分。
首帧没有可比较的历史帧，不产生结果。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, Optional, Tuple

import cv2  # type: ignore
import numpy as np

LUMA_WEIGHTS = (0.3, 0.6, 0.1)


@dataclass(frozen=True)
class Frame:
    """单帧 RGBA 图像及采集时间，创建后只读。"""

    rgba: np.ndarray
    timestamp: float

    @classmethod
    def from_array(cls, rgba: np.ndarray, timestamp: float) -> "Frame":
        data = np.array(rgba, dtype=np.uint8, copy=True)
        if data.ndim != 3 or data.shape[2] != 4:
            raise ValueError(f"需要 H×W×4 的 RGBA 数组，实际为 {data.shape}")
        data.setflags(write=False)
        return cls(rgba=data, timestamp=timestamp)

    @property
    def width(self) -> int:
        return int(self.rgba.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgba.shape[0])


@dataclass(frozen=True)
class MotionBox:
    """覆盖全部运动像素的最小轴对齐矩形（含边界）。"""

    x_min: int
    x_max: int
    y_min: int
    y_max: int

    @property
    def width(self) -> int:
        return self.x_max - self.x_min

    @property
    def height(self) -> int:
        return self.y_max - self.y_min


@dataclass(frozen=True)
class MotionMask:
    """稀疏的运动像素坐标集合。"""

    pixels: FrozenSet[Tuple[int, int]] = frozenset()

    def contains(self, x: int, y: int) -> bool:
        return (x, y) in self.pixels

    def __contains__(self, item: object) -> bool:
        return item in self.pixels

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return iter(self.pixels)

    def __len__(self) -> int:
        return len(self.pixels)


@dataclass(frozen=True)
class DifferenceResult:
    """一个采集周期的差分结果。"""

    score: int
    has_motion: bool
    frame: Frame
    difference_image: np.ndarray = field(repr=False)
    motion_box: Optional[MotionBox] = None
    motion_mask: Optional[MotionMask] = None

    def check_motion_pixel(self, x: int, y: int) -> bool:
        return self.motion_mask is not None and self.motion_mask.contains(x, y)


def difference_blend(previous: np.ndarray, current: np.ndarray) -> np.ndarray:
    """等价于画布 `difference` 合成模式：逐通道取 |current - previous|。"""

    if previous.shape != current.shape:
        raise ValueError(f"帧尺寸不一致: {previous.shape} != {current.shape}")
    return cv2.absdiff(current, previous)


class DifferenceEngine:
    """保存上一帧并对相邻帧打分，不参与任何电源策略。"""

    def __init__(
        self,
        width: int = 64,
        height: int = 48,
        pixel_threshold: int = 32,
        score_threshold: int = 16,
        include_motion_box: bool = False,
        include_motion_mask: bool = False,
    ) -> None:
        if pixel_threshold <= 0:
            raise ValueError("pixel_threshold 必须为正数")
        self.width = width
        self.height = height
        self.pixel_threshold = pixel_threshold
        self.score_threshold = score_threshold
        self.include_motion_box = include_motion_box
        self.include_motion_mask = include_motion_mask
        self._previous: Optional[np.ndarray] = None

    @property
    def ready(self) -> bool:
        """是否已有可供比较的上一帧。"""

        return self._previous is not None

    def process(self, frame: Frame) -> Optional[DifferenceResult]:
        current = self._downsample(frame.rgba)
        result: Optional[DifferenceResult] = None
        if self._previous is not None:
            blended = difference_blend(self._previous, current)
            result = self._score(blended, frame)
        self._previous = current
        return result

    def reset(self) -> None:
        """丢弃历史帧，下一帧重新作为基准。"""

        self._previous = None

    def _downsample(self, rgba: np.ndarray) -> np.ndarray:
        if rgba.shape[0] == self.height and rgba.shape[1] == self.width:
            return np.array(rgba, dtype=np.uint8, copy=True)
        return cv2.resize(rgba, (self.width, self.height), interpolation=cv2.INTER_AREA)

    def _score(self, blended: np.ndarray, frame: Frame) -> DifferenceResult:
        rgb = blended[..., :3].astype(np.float64)
        r_weight, g_weight, b_weight = LUMA_WEIGHTS
        pixel_diff = rgb[..., 0] * r_weight + rgb[..., 1] * g_weight + rgb[..., 2] * b_weight

        visual = np.zeros_like(blended)
        normalized = np.minimum(255.0, pixel_diff * (255.0 / self.pixel_threshold))
        visual[..., 1] = np.rint(normalized).astype(np.uint8)
        visual[..., 3] = 255
        visual.setflags(write=False)

        moved = pixel_diff >= self.pixel_threshold
        score = int(np.count_nonzero(moved))

        motion_box: Optional[MotionBox] = None
        motion_mask: Optional[MotionMask] = None
        if score and (self.include_motion_box or self.include_motion_mask):
            indices = np.flatnonzero(moved)
            xs = indices % self.width
            ys = indices // self.width
            if self.include_motion_box:
                motion_box = MotionBox(
                    x_min=int(xs.min()),
                    x_max=int(xs.max()),
                    y_min=int(ys.min()),
                    y_max=int(ys.max()),
                )
            if self.include_motion_mask:
                motion_mask = MotionMask(frozenset(zip(xs.tolist(), ys.tolist())))
        elif self.include_motion_mask:
            motion_mask = MotionMask()

        return DifferenceResult(
            score=score,
            has_motion=score >= self.score_threshold,
            frame=frame,
            difference_image=visual,
            motion_box=motion_box,
            motion_mask=motion_mask,
        )
