"""FastAPI 状态接口。"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from mirrorwake.config_store import UserSettings, save_user_settings
from mirrorwake.core.notification_bus import ACTIVATE_MONITOR, DEACTIVATE_MONITOR
from mirrorwake.service import MirrorWakeService

_ACTIONS = {
    "activate": ACTIVATE_MONITOR,
    "deactivate": DEACTIVATE_MONITOR,
}


class SettingsPayload(BaseModel):
    display_timeout_seconds: float = Field(..., ge=0.0)
    score_threshold: int = Field(..., ge=0)
    check_state: bool = True
    use_power: bool = True


def create_app(service: MirrorWakeService, settings_path: Optional[Path] = None) -> FastAPI:
    """构建 FastAPI 应用并注册基础路由。"""

    app = FastAPI(title="mirrorwake")

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/status", tags=["monitor"])
    async def status() -> dict:
        return service.status().to_dict()

    @app.get("/metrics", tags=["metrics"])
    async def metrics() -> dict:
        latest = service.scores.latest()
        return {
            "scoreThreshold": service.config.score_threshold,
            "lastScore": latest.score if latest is not None else None,
            "summary": service.scores.summary(),
        }

    @app.post("/monitor/{action}", tags=["monitor"])
    async def monitor(action: str) -> dict:
        notification = _ACTIONS.get(action)
        if notification is None:
            raise HTTPException(status_code=404, detail=f"unknown action: {action}")
        if not service.config.use_power:
            raise HTTPException(status_code=409, detail="power control is disabled (use_power=false)")

        controller = service.controller
        accepted = not controller.operation_running
        service.bus.publish(notification, {"checkState": service.config.check_state})
        await controller.wait_idle()
        return {"accepted": accepted, "monitorState": controller.state.value}

    @app.put("/settings", tags=["settings"])
    async def update_settings(payload: SettingsPayload) -> dict:
        """保存用户覆盖设置，下次启动时生效。"""

        settings = UserSettings(
            display_timeout_seconds=payload.display_timeout_seconds,
            score_threshold=payload.score_threshold,
            check_state=payload.check_state,
            use_power=payload.use_power,
        )
        save_user_settings(settings, settings_path)
        return settings.to_dict()

    return app
