"""
Global test configuration with support for different test types.
"""

from collections.abc import Callable
import logging
import os

import pytest

from datalens.config import FrozenConfig, resolve_config
from datalens.core.exceptions import RepairError, RepairErrorKind

# --- Environment Isolation (Autouse) ---


@pytest.fixture(autouse=True)
def isolate_datalens_env(request, monkeypatch):
    """Ensure a clean DATALENS_*/GEMINI_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith(("DATALENS_", "GEMINI_")):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggles turning telemetry on
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_config_sources(request, monkeypatch, tmp_path):
    """Point the home config at a temp file and run from an empty directory.

    Prevents reading a developer's real ~/.config/datalens.toml or the
    checkout's own pyproject.toml during tests.
    """
    if request.node.get_closest_marker("allow_real_home_config"):
        return

    workdir = tmp_path / "workdir"
    workdir.mkdir()
    monkeypatch.setenv("DATALENS_CONFIG_HOME", str(tmp_path / "datalens.toml"))
    monkeypatch.chdir(workdir)


@pytest.fixture(autouse=True)
def quiet_third_party_logs():
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Interface and invariant checks across stages",
        "allow_env_pollution: Keep DATALENS_*/GEMINI_* variables for this test",
        "allow_real_home_config: Read the real home config file",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def mock_api_key():
    """A fake key that passes the syntactic credential check."""
    return "AIzaSyTestKey_1234567890abcdef"


@pytest.fixture
def frozen_config(mock_api_key) -> FrozenConfig:
    """Defaults plus a valid-looking key and a short repair deadline."""
    return resolve_config({"api_key": mock_api_key, "repair_timeout": 1.0}).to_frozen()


class FakeAdapter:
    """Records calls and answers from a scripted list of candidate lists.

    An entry that is an exception instance is raised instead of returned.
    """

    def __init__(self, *answers: object) -> None:
        self.answers = list(answers) or [[]]
        self.calls: list[dict[str, object]] = []

    async def generate(
        self, *, model_name: str, prompt: str, api_config: dict[str, object]
    ) -> list[str]:
        self.calls.append(
            {"model_name": model_name, "prompt": prompt, "api_config": api_config}
        )
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, BaseException):
            raise answer
        return list(answer)  # type: ignore[call-overload]


@pytest.fixture
def fake_adapter() -> Callable[..., FakeAdapter]:
    """Factory for scripted adapters: ``fake_adapter(["corrected"])``."""
    return FakeAdapter


@pytest.fixture
def service_error() -> RepairError:
    return RepairError(RepairErrorKind.SERVICE_ERROR, "AI correction failed: quota", code=429)
