"""项目内使用的异常类型。"""

from __future__ import annotations


class MirrorWakeError(Exception):
    """所有自定义异常的基类。"""


class CameraAcquisitionError(MirrorWakeError):
    """摄像头或视频流无法打开。"""


class CommandExecutionError(MirrorWakeError):
    """外部命令以非零状态退出或无法启动。"""

    def __init__(self, command_line: str, returncode: int | None, stderr: str = "") -> None:
        self.command_line = command_line
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no stderr"
        super().__init__(f"命令执行失败 (code={returncode}): {command_line}: {detail}")
