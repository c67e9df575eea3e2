"""命令行入口：python -m mirrorwake。"""

from __future__ import annotations

import asyncio
import logging

from mirrorwake.config import AppConfig
from mirrorwake.config_store import load_user_settings
from mirrorwake.service import run_service


def main() -> None:
    config = AppConfig.load()
    user_settings = load_user_settings()
    if user_settings is not None:
        config = user_settings.apply(config)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="[%(asctime)s][%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)
    logger.info(
        "启动 mirrorwake: 采集间隔 %s ms, 熄屏超时 %s 秒, 电源控制 %s",
        config.capture_interval_ms,
        config.display_timeout_seconds,
        config.use_power,
    )
    if user_settings is not None:
        logger.info("已应用用户设置: %s", user_settings.to_dict())

    asyncio.run(run_service(config))


if __name__ == "__main__":
    main()
