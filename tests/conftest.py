from __future__ import annotations

import pytest

from districts import config as districts_config


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for name in (
        "DISTRICTS_MAP_KEY",
        "TENCENT_MAP_KEY",
        "DISTRICTS_OBJECT_KEY",
        "DISTRICTS_CALLER_IDENTITY",
        "DISTRICTS_API_URL",
        "DISTRICTS_HTTP_TIMEOUT_S",
        "DISTRICTS_STORE_DIR",
        "DISTRICTS_SCHEDULE_CRON",
        "DISTRICTS_ENABLE_SCHEDULER",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DISTRICTS_CONFIG_PATH", str(tmp_path / "config.yaml"))
    districts_config.load.cache_clear()
    yield
    districts_config.load.cache_clear()
