"""外部命令执行器。"""

from __future__ import annotations

import asyncio
import collections
import logging
from typing import Deque, List

from mirrorwake.core.power_controller import CommandOutcome
from mirrorwake.core.power_profiles import CommandProfile, PowerProfile
from mirrorwake.errors import CommandExecutionError

logger = logging.getLogger(__name__)


class ShellCommandExecutor:
    """通过 shell 异步执行命令，不设超时，也不重试。"""

    async def run(self, command_line: str) -> CommandOutcome:
        logger.debug("执行命令: %s", command_line)
        try:
            process = await asyncio.create_subprocess_shell(
                command_line,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_bytes, stderr_bytes = await process.communicate()
        except OSError as exc:
            return CommandOutcome(error=exc)

        stdout = stdout_bytes.decode(errors="replace")
        stderr = stderr_bytes.decode(errors="replace")
        if process.returncode != 0:
            error = CommandExecutionError(command_line, process.returncode, stderr)
            return CommandOutcome(error=error, stdout=stdout, stderr=stderr)
        return CommandOutcome(error=None, stdout=stdout, stderr=stderr)


class DryRunExecutor:
    """不触碰硬件的模拟执行器，按命令方案回放查询输出，便于开发调试。"""

    def __init__(
        self,
        profile: CommandProfile,
        initially_on: bool = True,
        delay: float = 0.05,
        history: int = 100,
    ) -> None:
        self._profile = profile
        self._on = initially_on
        self._delay = delay
        self._commands: Deque[str] = collections.deque(maxlen=history)

    @property
    def commands(self) -> List[str]:
        """最近执行过的命令（最多保留 history 条）。"""

        return list(self._commands)

    @property
    def display_on(self) -> bool:
        return self._on

    async def run(self, command_line: str) -> CommandOutcome:
        self._commands.append(command_line)
        await asyncio.sleep(self._delay)
        if command_line == self._profile.on_command:
            self._on = True
        elif command_line == self._profile.off_command:
            self._on = False
        elif command_line == self._profile.query_command:
            logger.info("[dry-run] %s", command_line)
            return CommandOutcome(error=None, stdout=self._query_output())
        else:
            error = CommandExecutionError(command_line, 127, "unknown command")
            return CommandOutcome(error=error, stderr="unknown command")
        logger.info("[dry-run] %s", command_line)
        return CommandOutcome(error=None)

    def _query_output(self) -> str:
        if self._profile.kind is PowerProfile.DIRECT:
            return "display_power=1\n" if self._on else "display_power=0\n"
        return "  On\n" if self._on else "  Off\n"
