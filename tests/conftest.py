from __future__ import annotations

import pytest

from autoflow.core.config import BUNDLED_REGISTRY_PATH
from autoflow.core.registry import CapabilityRegistry, load_registry

_ENV_NAMES = (
    "AUTOFLOW_CONFIG",
    "AUTOFLOW_REGISTRY_PATH",
    "AUTOFLOW_DEFAULT_INPUT_NODE",
    "AUTOFLOW_DEFAULT_OUTPUT_NODE",
    "AUTOFLOW_NODE_TIMEOUT_S",
    "AUTOFLOW_LOG_LEVEL",
    "AUTOFLOW_LOG_TO_FILE",
    "AUTOFLOW_LOG_DIR",
    "AUTOFLOW_LOG_MAX_BYTES",
    "AUTOFLOW_LOG_BACKUP_COUNT",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AUTOFLOW_STATE_DIR", str(tmp_path / "state"))


@pytest.fixture(scope="session")
def registry() -> CapabilityRegistry:
    return load_registry(BUNDLED_REGISTRY_PATH)
