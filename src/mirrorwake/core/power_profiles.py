"""显示器电源命令配置：树莓派 vcgencmd 与 X11 DPMS 两套固定方案。"""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# 从当前登录会话中找到活动的 X 显示
_EXPORT_DISPLAY = "export DISPLAY=$(w -oush | grep -Eo ' :[0-9]+' | uniq | cut -d \\  -f 2)"


def direct_power_is_on(stdout: str) -> bool:
    """`vcgencmd display_power` 输出形如 `display_power=1`。"""

    return "=1" in stdout


def dpms_power_is_on(stdout: str) -> bool:
    """`xset q` 中 `Monitor is On` 一行，区分大小写。"""

    return stdout.strip() == "On"


class PowerProfile(Enum):
    DIRECT = "direct"
    DPMS = "dpms"


@dataclass(frozen=True)
class CommandProfile:
    """一组查询/开启/关闭命令及其输出解析函数。"""

    kind: PowerProfile
    query_command: str
    on_command: str
    off_command: str
    parser: Callable[[str], bool]

    @property
    def name(self) -> str:
        return self.kind.value

    def is_on(self, stdout: str) -> bool:
        return self.parser(stdout)


DIRECT_PROFILE = CommandProfile(
    kind=PowerProfile.DIRECT,
    query_command="vcgencmd display_power",
    on_command="vcgencmd display_power 1",
    off_command="vcgencmd display_power 0",
    parser=direct_power_is_on,
)

DPMS_PROFILE = CommandProfile(
    kind=PowerProfile.DPMS,
    query_command=f"{_EXPORT_DISPLAY} && xset q|sed -ne 's/^[ ]*Monitor is //p'",
    on_command=f"{_EXPORT_DISPLAY} && xset dpms force on",
    off_command=f"{_EXPORT_DISPLAY} && xset dpms force off",
    parser=dpms_power_is_on,
)

PROFILES = {
    PowerProfile.DIRECT: DIRECT_PROFILE,
    PowerProfile.DPMS: DPMS_PROFILE,
}


def is_arm_machine(machine: str) -> bool:
    machine = machine.lower()
    return machine.startswith("arm") or machine.startswith("aarch64")


def select_profile(preference: str = "auto", machine: Optional[str] = None) -> CommandProfile:
    """启动时选择一次命令配置：ARM 使用 vcgencmd，其余平台使用 DPMS。"""

    if preference != "auto":
        profile = PROFILES[PowerProfile(preference)]
        logger.info("使用配置指定的电源命令方案: %s", profile.name)
        return profile

    machine = machine if machine is not None else platform.machine()
    profile = DIRECT_PROFILE if is_arm_machine(machine) else DPMS_PROFILE
    logger.info("平台架构 %s，选择电源命令方案: %s", machine or "unknown", profile.name)
    return profile
