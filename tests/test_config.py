from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from opdiff.config import DEFAULT_CONFIG_TEMPLATE, EngineSettings, load_config
from opdiff.errors import ValidationError
from opdiff.policy.guards import DEFAULT_LIMITS


def _write_config(path: Path, data: dict) -> Path:
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle)
    return path


def test_missing_config_yields_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "absent.yaml") == DEFAULT_CONFIG_TEMPLATE
    assert load_config() == DEFAULT_CONFIG_TEMPLATE


def test_user_values_merge_over_defaults(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "opdiff.yaml", {"limits": {"max_edits": 10}})

    config = load_config(path)

    assert config["limits"]["max_edits"] == 10
    assert config["limits"]["max_line_length"] == DEFAULT_LIMITS.max_line_length
    assert config["sessions"]["max_retries"] == 2


def test_invalid_yaml_is_a_validation_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("limits: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValidationError, match="Failed to parse config"):
        load_config(path)


def test_non_mapping_document_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValidationError, match="mapping at the top level"):
        load_config(path)


def test_settings_default_without_environment() -> None:
    settings = EngineSettings.load(env={})

    assert settings.limits == DEFAULT_LIMITS
    assert settings.sessions.cache_ttl_seconds == 900
    assert settings.sessions.retry_delay_seconds == pytest.approx(0.075)
    assert settings.sessions.projects_root == Path("~/.claude/projects").expanduser()


def test_environment_overrides_defaults(tmp_path: Path) -> None:
    env = {
        "OPDIFF_MAX_EDITS": "7",
        "OPDIFF_CACHE_TTL_MS": "1000",
        "OPDIFF_PROJECTS_ROOT": str(tmp_path),
        "OPDIFF_MAX_CONTENT_CHARS": "not-a-number",
    }

    settings = EngineSettings.load(env=env)

    assert settings.limits.max_edits == 7
    assert settings.limits.max_content_chars == DEFAULT_LIMITS.max_content_chars
    assert settings.sessions.cache_ttl_seconds == 1
    assert settings.sessions.projects_root == tmp_path


def test_config_file_wins_over_environment(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "opdiff.yaml",
        {"limits": {"max_edits": 3}, "sessions": {"projects_root": str(tmp_path / "logs")}},
    )

    settings = EngineSettings.load(path, env={"OPDIFF_MAX_EDITS": "7", "OPDIFF_PROJECTS_ROOT": "/elsewhere"})

    assert settings.limits.max_edits == 3
    assert settings.sessions.projects_root == tmp_path / "logs"


def test_invalid_limit_values_fall_back_to_defaults(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "opdiff.yaml", {"limits": {"max_edits": -1, "max_path_length": True}})

    settings = EngineSettings.load(path, env={})

    assert settings.limits.max_edits == DEFAULT_LIMITS.max_edits
    assert settings.limits.max_path_length == DEFAULT_LIMITS.max_path_length
