"""本地配置覆盖示例（存在时由 AppConfig.load() 自动加载）。"""

from mirrorwake.config import AppConfig


def load_config() -> AppConfig:
    return AppConfig(
        capture_interval_ms=100,
        pixel_threshold=32,
        score_threshold=16,
        capture_width=640,
        capture_height=480,
        difference_width=64,
        difference_height=48,
        display_timeout_seconds=120,
        check_state=True,
        use_power=True,
        fadeout_ms=500,
        # power_profile="dpms",
        # simulate_camera=True,
    )
