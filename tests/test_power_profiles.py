"""电源命令方案与输出解析测试。"""

from __future__ import annotations

import pytest

from mirrorwake.core.power_profiles import (
    DIRECT_PROFILE,
    DPMS_PROFILE,
    PowerProfile,
    direct_power_is_on,
    dpms_power_is_on,
    select_profile,
)


@pytest.mark.parametrize(
    ("stdout", "expected"),
    [
        ("display_power=1\n", True),
        ("display_power=0\n", False),
        ("display_power=1 display_id=2", True),
        ("", False),
    ],
)
def test_direct_parser_matches_substring(stdout: str, expected: bool) -> None:
    assert direct_power_is_on(stdout) is expected


@pytest.mark.parametrize(
    ("stdout", "expected"),
    [
        ("On", True),
        ("  On\n", True),
        ("on", False),
        ("Off\n", False),
        ("Standby", False),
        ("On Off", False),
    ],
)
def test_dpms_parser_requires_trimmed_on(stdout: str, expected: bool) -> None:
    assert dpms_power_is_on(stdout) is expected


def test_direct_profile_commands() -> None:
    assert DIRECT_PROFILE.query_command == "vcgencmd display_power"
    assert DIRECT_PROFILE.on_command == "vcgencmd display_power 1"
    assert DIRECT_PROFILE.off_command == "vcgencmd display_power 0"
    assert DIRECT_PROFILE.is_on("display_power=1")


def test_dpms_profile_locates_display_first() -> None:
    for command in (DPMS_PROFILE.query_command, DPMS_PROFILE.on_command, DPMS_PROFILE.off_command):
        assert command.startswith("export DISPLAY=$(w -oush")
    assert DPMS_PROFILE.on_command.endswith("xset dpms force on")
    assert DPMS_PROFILE.off_command.endswith("xset dpms force off")
    assert "Monitor is" in DPMS_PROFILE.query_command


@pytest.mark.parametrize(
    ("machine", "expected"),
    [
        ("armv7l", PowerProfile.DIRECT),
        ("armv6l", PowerProfile.DIRECT),
        ("aarch64", PowerProfile.DIRECT),
        ("arm64", PowerProfile.DIRECT),
        ("x86_64", PowerProfile.DPMS),
        ("AMD64", PowerProfile.DPMS),
        ("", PowerProfile.DPMS),
    ],
)
def test_select_profile_by_architecture(machine: str, expected: PowerProfile) -> None:
    assert select_profile("auto", machine=machine).kind is expected


def test_select_profile_respects_explicit_preference() -> None:
    assert select_profile("dpms", machine="armv7l") is DPMS_PROFILE
    assert select_profile("direct", machine="x86_64") is DIRECT_PROFILE
