"""缓存最近的差分得分，供状态接口读取（仅在内存中，不落盘）。"""

from __future__ import annotations

import collections
import datetime as dt
import threading
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional


@dataclass
class ScoreRecord:
    """单条得分记录。"""

    timestamp: dt.datetime
    score: int
    has_motion: bool


class ScoreBuffer:
    """环形缓冲区，支持多线程追加与快照。"""

    def __init__(self, maxlen: int = 600) -> None:
        self._records: Deque[ScoreRecord] = collections.deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def append(self, record: ScoreRecord) -> None:
        with self._lock:
            self._records.append(record)

    def snapshot(self) -> List[ScoreRecord]:
        """返回当前记录的浅拷贝。"""

        with self._lock:
            return list(self._records)

    def latest(self) -> Optional[ScoreRecord]:
        with self._lock:
            return self._records[-1] if self._records else None

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def summary(self) -> Dict[str, float]:
        """汇总缓存中的得分，用于 /metrics。"""

        records = self.snapshot()
        if not records:
            return {"samples": 0.0, "mean_score": 0.0, "max_score": 0.0, "motion_ratio": 0.0}

        scores = [record.score for record in records]
        motion = sum(1 for record in records if record.has_motion)
        return {
            "samples": float(len(records)),
            "mean_score": float(sum(scores)) / len(scores),
            "max_score": float(max(scores)),
            "motion_ratio": motion / len(records),
        }
