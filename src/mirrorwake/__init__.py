"""根据摄像头画面的运动情况自动开关显示器。"""

__version__ = "0.1.0"
