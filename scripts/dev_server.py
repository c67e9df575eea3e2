"""开发环境启动：模拟摄像头 + 不触碰硬件的电源命令。"""

from __future__ import annotations

import asyncio
import logging

from mirrorwake.adapters.power import DryRunExecutor
from mirrorwake.adapters.vision import SimulatedFrameSource
from mirrorwake.config import AppConfig
from mirrorwake.core.power_profiles import select_profile
from mirrorwake.service import MirrorWakeService, run_service

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format="[%(asctime)s][%(levelname)s] %(name)s: %(message)s")


async def main() -> None:
    config_model = AppConfig.load().model_copy(
        update={
            "simulate_camera": True,
            "display_timeout_seconds": 10.0,
            "include_motion_box": True,
        }
    )
    profile = select_profile(config_model.power_profile)
    service = MirrorWakeService(
        config_model,
        source=SimulatedFrameSource(),
        executor=DryRunExecutor(profile),
        profile=profile,
    )
    logger.info("开发服务器: http://%s:%s/status", config_model.api_host, config_model.api_port)
    await run_service(config_model, service=service)


if __name__ == "__main__":
    asyncio.run(main())
