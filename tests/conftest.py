"""Shared fixtures for Terminus tests."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Dict, List

import pytest
import yaml

from terminus_client.api.client import ApiResponse
from terminus_client.config.loader import CONFIG_PATH_ENV, ENV_OVERRIDES
from terminus_client.config.models import TerminusConfig, WorkflowPollConfig
from terminus_client.models.owners import EnvironmentRef, SiteRef
from terminus_client.models.progress import DotProgress
from terminus_client.models.workflow import Workflow

SITE_ID = "11111111-2222-3333-4444-555555555555"

SAMPLE_CONFIG: Dict[str, Any] = {
    "terminus": {"name": "Terminus", "version": "0.1.0"},
    "api": {
        "protocol": "https",
        "host": "terminus.example.com",
        "port": 443,
        "base_path": "/api",
        "timeout": 10,
    },
    "auth": {"session_token": "secret-session-token", "user_id": "user-1"},
    "workflows": {"poll_interval": 0.01, "fetch_retries": 1, "retry_delay": 0},
}


class FakeClient:
    """Request capability that replays queued responses and records every call."""

    def __init__(self, *responses: Any, current_user_id: str = "user-1") -> None:
        self.current_user_id = current_user_id
        self.calls: List[Dict[str, Any]] = []
        self._responses = list(responses)

    def queue(self, *responses: Any) -> None:
        self._responses.extend(responses)

    def request(
        self,
        path: str,
        method: str = "GET",
        params: Dict[str, Any] | None = None,
        json: Any = None,
    ) -> ApiResponse:
        self.calls.append({"path": path, "method": method, "params": params, "json": json})
        if not self._responses:
            raise AssertionError(f"Unexpected request: {method} {path}")
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, ApiResponse):
            return item
        return ApiResponse(status_code=200, data=item)


class FakeClock:
    """Stands in for time.sleep / time.time / time.monotonic."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now
        self.sleeps: List[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def time(self) -> float:
        return self.now


@pytest.fixture(autouse=True)
def _clean_terminus_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's TERMINUS_* variables out of the tests."""
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    for var_name in ENV_OVERRIDES:
        monkeypatch.delenv(var_name, raising=False)


@pytest.fixture()
def sample_config() -> TerminusConfig:
    """Return a parsed TerminusConfig from sample data."""
    return TerminusConfig(**SAMPLE_CONFIG)


@pytest.fixture()
def sample_config_dict() -> Dict[str, Any]:
    """Return raw sample config dict."""
    return dict(SAMPLE_CONFIG)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Write sample config to a temp .terminus.yaml and return the path."""
    path = tmp_path / ".terminus.yaml"
    with path.open("w") as fh:
        yaml.dump(SAMPLE_CONFIG, fh)
    return path


@pytest.fixture()
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def env_owner() -> EnvironmentRef:
    return EnvironmentRef("dev", SiteRef(SITE_ID))


@pytest.fixture()
def make_workflow(fake_client: FakeClient, fake_clock: FakeClock, env_owner: EnvironmentRef):
    """Factory for environment-owned workflows wired to the fake client and clock."""

    def _make(attributes: Dict[str, Any] | None = None, **kwargs: Any) -> Workflow:
        kwargs.setdefault("poll", WorkflowPollConfig(poll_interval=3.0, fetch_retries=0))
        kwargs.setdefault("progress", DotProgress(io.StringIO()))
        kwargs.setdefault("sleep", fake_clock.sleep)
        kwargs.setdefault("clock", fake_clock.time)
        kwargs.setdefault("monotonic", fake_clock.time)
        return Workflow(attributes or {"id": "wf-1"}, env_owner, fake_client, **kwargs)

    return _make
