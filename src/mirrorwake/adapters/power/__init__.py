"""显示器电源命令执行适配器。"""

from .executor import DryRunExecutor, ShellCommandExecutor

__all__ = [
    "DryRunExecutor",
    "ShellCommandExecutor",
]
