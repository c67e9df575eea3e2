"""应用配置模型。"""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """单次会话内不可变的配置记录，启动时加载一次后传入各组件。"""

    model_config = ConfigDict(frozen=True)

    capture_interval_ms: int = Field(100, ge=1)
    pixel_threshold: int = Field(32, ge=1, le=255)
    score_threshold: int = Field(16, ge=0)
    capture_width: int = Field(640, ge=1)
    capture_height: int = Field(480, ge=1)
    difference_width: int = Field(64, ge=1)
    difference_height: int = Field(48, ge=1)
    display_timeout_seconds: float = Field(120.0, ge=0.0)
    check_state: bool = True
    use_power: bool = True
    fadeout_ms: int = Field(500, ge=0)
    include_motion_box: bool = False
    include_motion_mask: bool = False
    camera_index: int = Field(0, ge=0)
    simulate_camera: bool = False
    power_profile: Literal["auto", "direct", "dpms"] = "auto"
    log_level: str = "INFO"
    api_enabled: bool = True
    api_host: str = "127.0.0.1"
    api_port: int = Field(8000, ge=1, le=65535)

    @property
    def capture_interval_seconds(self) -> float:
        return self.capture_interval_ms / 1000.0

    @classmethod
    def load_default(cls) -> "AppConfig":
        return cls()

    @classmethod
    def load(cls, root_dir: Path | None = None) -> "AppConfig":
        """优先尝试加载项目根目录的 `config.local.py`，否则返回默认配置。"""

        root_dir = root_dir or Path(__file__).resolve().parents[2]
        local_path = root_dir / "config.local.py"
        if not local_path.exists():
            return cls.load_default()

        spec = importlib.util.spec_from_file_location("config_local", local_path)
        if spec is None or spec.loader is None:
            return cls.load_default()

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)  # type: ignore[arg-type]
        except Exception:
            logger.warning("加载 %s 失败，使用默认配置", local_path, exc_info=True)
            return cls.load_default()

        load_fn = getattr(module, "load_config", None)
        if callable(load_fn):
            try:
                return load_fn()
            except Exception:
                logger.warning("执行 load_config() 失败，使用默认配置", exc_info=True)
                return cls.load_default()
        return cls.load_default()
