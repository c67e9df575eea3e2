"""用户覆盖设置的 JSON 存储（熄屏超时、运动阈值、电源控制开关）。"""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from mirrorwake.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".mirrorwake" / "config.json"


@dataclasses.dataclass
class UserSettings:
    display_timeout_seconds: float
    score_threshold: int
    check_state: bool
    use_power: bool

    @classmethod
    def from_config(cls, config: AppConfig) -> "UserSettings":
        values = {f.name: getattr(config, f.name) for f in dataclasses.fields(cls)}
        return cls(**values)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    def apply(self, config: AppConfig) -> AppConfig:
        """返回覆盖了用户设置的新配置，原配置保持不变；越界取值抛出 ValidationError。"""

        return AppConfig.model_validate({**config.model_dump(), **self.to_dict()})


def load_user_settings(path: Optional[Path] = None) -> Optional[UserSettings]:
    """读取用户设置；文件不存在或内容无效时返回 None。"""

    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        return None

    defaults = UserSettings.from_config(AppConfig.load_default())
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
        settings = UserSettings(
            display_timeout_seconds=float(data.get("display_timeout_seconds", defaults.display_timeout_seconds)),
            score_threshold=int(data.get("score_threshold", defaults.score_threshold)),
            check_state=bool(data.get("check_state", defaults.check_state)),
            use_power=bool(data.get("use_power", defaults.use_power)),
        )
        settings.apply(AppConfig.load_default())
    except ValidationError as exc:
        logger.warning("用户设置 %s 超出允许范围，忽略: %s", cfg_path, exc)
        return None
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("用户设置 %s 无法解析，忽略: %s", cfg_path, exc)
        return None
    return settings


def save_user_settings(settings: UserSettings, path: Optional[Path] = None) -> None:
    cfg_path = path or DEFAULT_CONFIG_PATH
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(json.dumps(settings.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("已保存用户设置到 %s", cfg_path)
