"""核心逻辑：帧差分评分、运动判定与显示器电源控制。"""

from .difference_engine import DifferenceEngine, DifferenceResult, Frame, MotionBox, MotionMask
from .motion_classifier import MotionClassifier
from .notification_bus import Notification, NotificationBus
from .power_controller import AsyncOperationResult, CommandOutcome, MonitorState, PowerController
from .power_profiles import CommandProfile, PowerProfile, select_profile
from .score_buffer import ScoreBuffer, ScoreRecord

__all__ = [
    "AsyncOperationResult",
    "CommandOutcome",
    "CommandProfile",
    "DifferenceEngine",
    "DifferenceResult",
    "Frame",
    "MonitorState",
    "MotionBox",
    "MotionClassifier",
    "MotionMask",
    "Notification",
    "NotificationBus",
    "PowerController",
    "PowerProfile",
    "ScoreBuffer",
    "ScoreRecord",
    "select_profile",
]
