"""FastAPI 状态接口测试。"""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

from fastapi.testclient import TestClient

from mirrorwake.adapters.power import DryRunExecutor
from mirrorwake.adapters.vision import SimulatedFrameSource
from mirrorwake.config import AppConfig
from mirrorwake.core.power_profiles import DIRECT_PROFILE
from mirrorwake.core.score_buffer import ScoreRecord
from mirrorwake.service import MirrorWakeService
from mirrorwake.ui import create_app


def _service(**overrides) -> tuple[MirrorWakeService, DryRunExecutor]:
    executor = DryRunExecutor(DIRECT_PROFILE, initially_on=True, delay=0)
    service = MirrorWakeService(
        AppConfig(**overrides),
        source=SimulatedFrameSource(),
        executor=executor,
        profile=DIRECT_PROFILE,
    )
    return service, executor


def test_health() -> None:
    service, _ = _service()
    client = TestClient(create_app(service))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_status_reports_initial_state() -> None:
    service, _ = _service()
    client = TestClient(create_app(service))

    body = client.get("/status").json()

    assert body["monitorState"] == "ON"
    assert body["monitorOff"] is False
    assert body["operationPending"] is False
    assert body["operationRunning"] is False
    assert body["lastScore"] is None
    assert body["motionBox"] is None
    assert body["streamReady"] is False
    assert body["profile"] == "direct"


def test_monitor_action_runs_power_command() -> None:
    service, executor = _service()
    client = TestClient(create_app(service))

    response = client.post("/monitor/deactivate")

    assert response.status_code == 200
    assert response.json() == {"accepted": True, "monitorState": "OFF"}
    assert executor.display_on is False
    assert executor.commands == [DIRECT_PROFILE.query_command, DIRECT_PROFILE.off_command]
    assert service.classifier.monitor_off is True

    response = client.post("/monitor/activate")

    assert response.json() == {"accepted": True, "monitorState": "ON"}
    assert executor.display_on is True


def test_unknown_monitor_action_is_404() -> None:
    service, executor = _service()
    client = TestClient(create_app(service))

    response = client.post("/monitor/reboot")

    assert response.status_code == 404
    assert executor.commands == []


def test_metrics_summarise_scores() -> None:
    service, _ = _service(score_threshold=10)
    for score, has_motion in ((0, False), (30, True)):
        service.scores.append(ScoreRecord(timestamp=dt.datetime.now(), score=score, has_motion=has_motion))
    client = TestClient(create_app(service))

    body = client.get("/metrics").json()

    assert body["scoreThreshold"] == 10
    assert body["lastScore"] == 30
    assert body["summary"]["samples"] == 2.0
    assert body["summary"]["max_score"] == 30.0
    assert body["summary"]["motion_ratio"] == 0.5


def test_settings_are_saved(tmp_path: Path) -> None:
    service, _ = _service()
    path = tmp_path / "config.json"
    client = TestClient(create_app(service, settings_path=path))

    response = client.put(
        "/settings",
        json={"display_timeout_seconds": 60, "score_threshold": 12, "check_state": False, "use_power": True},
    )

    assert response.status_code == 200
    assert response.json()["score_threshold"] == 12
    assert json.loads(path.read_text(encoding="utf-8"))["display_timeout_seconds"] == 60.0


def test_settings_reject_negative_values(tmp_path: Path) -> None:
    service, _ = _service()
    client = TestClient(create_app(service, settings_path=tmp_path / "config.json"))

    response = client.put("/settings", json={"display_timeout_seconds": -1, "score_threshold": 12})

    assert response.status_code == 422
    assert not (tmp_path / "config.json").exists()


def test_monitor_action_conflicts_without_power_control() -> None:
    service, executor = _service(use_power=False)
    client = TestClient(create_app(service))

    response = client.post("/monitor/deactivate")

    assert response.status_code == 409
    assert executor.commands == []
    assert service.classifier.monitor_off is False
