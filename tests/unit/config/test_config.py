"""Unit tests for configuration resolution.

These tests verify the core behaviors of the configuration module:
- Precedence across defaults, files, environment and overrides.
- Source tracking and redaction.
- Validation failures surfacing as ``ConfigurationError``.
"""

import dataclasses
from pathlib import Path

import pytest

from datalens.config import (
    ConfigFileError,
    FileConfigLoader,
    check_config_security,
    resolve_config,
    validate_api_key,
)
from datalens.core.exceptions import ConfigurationError, DataLensError
from datalens.orchestrator import ParseSession

pytestmark = pytest.mark.unit

KEY = "AIzaSyTestKey_1234567890abcdef"


class TestResolution:
    def test_defaults(self):
        resolved = resolve_config()
        assert resolved.api_key is None
        assert resolved.model == "gemini-2.0-flash"
        assert resolved.max_rows == 1000
        assert resolved.max_file_size == 10 * 1024 * 1024
        assert resolved.repair_timeout == 30.0
        assert resolved.origin["max_rows"] == "default"

    def test_environment_with_prefix(self, monkeypatch):
        monkeypatch.setenv("DATALENS_MAX_ROWS", "25")
        monkeypatch.setenv("DATALENS_MODEL", "gemini-env")
        resolved = resolve_config()
        assert resolved.max_rows == 25
        assert resolved.model == "gemini-env"
        assert resolved.origin["max_rows"] == "env"

    def test_gemini_api_key_is_accepted(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", KEY)
        resolved = resolve_config()
        assert resolved.api_key == KEY
        assert resolved.origin["api_key"] == "env"

    def test_blank_env_key_is_unset(self, monkeypatch):
        monkeypatch.setenv("DATALENS_API_KEY", "   ")
        assert resolve_config().api_key is None

    def test_programmatic_beats_environment(self, monkeypatch):
        monkeypatch.setenv("DATALENS_MAX_ROWS", "25")
        resolved = resolve_config({"max_rows": 7})
        assert resolved.max_rows == 7
        assert resolved.origin["max_rows"] == "programmatic"

    def test_unknown_programmatic_fields_are_ignored(self):
        resolved = resolve_config({"no_such_field": 1})
        assert "no_such_field" not in resolved.origin

    def test_project_file(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(
            '[tool.datalens]\nmax_rows = 50\nmodel = "gemini-file"\n',
            encoding="utf-8",
        )
        resolved = resolve_config(project_root=tmp_path)
        assert resolved.max_rows == 50
        assert resolved.model == "gemini-file"
        assert resolved.origin["model"] == "file"

    def test_environment_beats_project_file(self, tmp_path, monkeypatch):
        (tmp_path / "pyproject.toml").write_text(
            "[tool.datalens]\nmax_rows = 50\n", encoding="utf-8"
        )
        monkeypatch.setenv("DATALENS_MAX_ROWS", "60")
        assert resolve_config(project_root=tmp_path).max_rows == 60

    def test_project_file_beats_home_file(self, tmp_path, monkeypatch):
        home = tmp_path / "home.toml"
        home.write_text("max_rows = 10\nrepair_timeout = 5.0\n", encoding="utf-8")
        monkeypatch.setenv("DATALENS_CONFIG_HOME", str(home))
        project = tmp_path / "project"
        project.mkdir()
        (project / "pyproject.toml").write_text(
            "[tool.datalens]\nmax_rows = 20\n", encoding="utf-8"
        )

        resolved = resolve_config(project_root=project)

        assert resolved.max_rows == 20
        assert resolved.repair_timeout == 5.0

    def test_malformed_home_file_is_skipped(self, tmp_path, monkeypatch):
        home = tmp_path / "home.toml"
        home.write_text("max_rows = = 1", encoding="utf-8")
        monkeypatch.setenv("DATALENS_CONFIG_HOME", str(home))
        assert resolve_config().max_rows == 1000

    def test_malformed_project_file_raises(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[tool.datalens\n", encoding="utf-8")
        with pytest.raises(ConfigFileError):
            resolve_config(project_root=tmp_path)

    def test_config_file_errors_belong_to_the_package_hierarchy(self):
        (Path.cwd() / "pyproject.toml").write_text(
            "[tool.datalens]\nmax_rows = \"x\" = 1\n", encoding="utf-8"
        )
        with pytest.raises(ConfigurationError) as exc_info:
            ParseSession()
        assert isinstance(exc_info.value, ConfigFileError)
        assert isinstance(exc_info.value, DataLensError)

    @pytest.mark.parametrize(
        "overrides",
        [{"max_rows": 0}, {"repair_timeout": -1}, {"top_p": 1.5}, {"model": ""}],
    )
    def test_invalid_values_raise_configuration_error(self, overrides):
        with pytest.raises(ConfigurationError, match="validation failed"):
            resolve_config(overrides)

    def test_invalid_environment_value_raises(self, monkeypatch):
        monkeypatch.setenv("DATALENS_MAX_ROWS", "lots")
        with pytest.raises(ConfigurationError):
            resolve_config()


class TestFrozenAndRedaction:
    def test_to_frozen_is_immutable(self):
        frozen = resolve_config({"api_key": KEY}).to_frozen()
        with pytest.raises(dataclasses.FrozenInstanceError):
            frozen.max_rows = 5  # type: ignore[misc]

    def test_api_key_never_appears_in_text(self):
        resolved = resolve_config({"api_key": KEY})
        for text in (str(resolved), repr(resolved), str(resolved.to_frozen()), resolved.audit()):
            assert KEY not in text
        assert "[REDACTED]" in str(resolved)
        assert "api_key: programmatic:<redacted>" in resolved.audit()

    def test_audit_names_env_variable(self, monkeypatch):
        monkeypatch.setenv("DATALENS_MAX_ROWS", "25")
        assert "max_rows: env:DATALENS_MAX_ROWS=25" in resolve_config().audit()

    def test_with_overrides_tracks_origin(self):
        resolved = resolve_config().with_overrides(max_rows=3, bogus=1)
        assert resolved.max_rows == 3
        assert resolved.origin["max_rows"] == "programmatic"

    def test_generation_config(self):
        frozen = resolve_config({"temperature": 0.0}).to_frozen()
        assert frozen.generation_config() == {
            "temperature": 0.0,
            "top_k": 1,
            "top_p": 0.8,
            "max_output_tokens": 8192,
        }


class TestValidation:
    @pytest.mark.parametrize(
        ("key", "ok"),
        [
            (KEY, True),
            ("AIza" + "x" * 17, True),
            ("AIza" + "x" * 16, False),
            ("sk-" + "x" * 30, False),
            ("", False),
            (None, False),
            ("   AIza" + "x" * 10 + "   ", False),
        ],
    )
    def test_validate_api_key(self, key, ok):
        assert validate_api_key(key) is ok

    def test_security_warnings(self):
        frozen = resolve_config(
            {"api_key": "not-a-gemini-key", "repair_timeout": 300, "temperature": 0.9}
        ).to_frozen()
        warnings = check_config_security(frozen)
        assert len(warnings) == 3

    def test_defaults_have_no_warnings(self):
        assert check_config_security(resolve_config({"api_key": KEY})) == []


def test_home_config_path_honors_override(tmp_path, monkeypatch):
    target = tmp_path / "custom.toml"
    monkeypatch.setenv("DATALENS_CONFIG_HOME", str(target))
    assert FileConfigLoader().home_config_path() == target
