"""YAML configuration and environment overrides for the engine and collaborators."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .errors import ValidationError
from .policy.guards import ResourceLimits

__all__ = [
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_CONFIG_TEMPLATE",
    "EngineSettings",
    "SessionSettings",
    "load_config",
]

DEFAULT_CONFIG_NAME = "opdiff.yaml"

_DEFAULT_LIMITS = ResourceLimits()

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "limits": {
        "max_content_chars": _DEFAULT_LIMITS.max_content_chars,
        "max_line_length": _DEFAULT_LIMITS.max_line_length,
        "max_edits": _DEFAULT_LIMITS.max_edits,
        "max_side_effects": _DEFAULT_LIMITS.max_side_effects,
        "max_path_length": _DEFAULT_LIMITS.max_path_length,
        "max_search_chars": _DEFAULT_LIMITS.max_search_chars,
    },
    "sessions": {
        "projects_root": "~/.claude/projects",
        "cache_ttl_ms": 15 * 60 * 1000,
        "max_retries": 2,
        "retry_delay_ms": 75,
    },
}

# Environment variable -> (section, key)
ENV_OVERRIDES: Dict[str, tuple[str, str]] = {
    "OPDIFF_MAX_CONTENT_CHARS": ("limits", "max_content_chars"),
    "OPDIFF_MAX_EDITS": ("limits", "max_edits"),
    "OPDIFF_CACHE_TTL_MS": ("sessions", "cache_ttl_ms"),
}
PROJECTS_ROOT_ENV = "OPDIFF_PROJECTS_ROOT"


def _copy_config_template() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def _read_yaml(path: Path) -> Mapping[str, Any]:
    """Read a YAML mapping from ``path``; a missing file reads as empty."""
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ValidationError(f"Failed to parse config: {error}", "config", path.as_posix()) from error
    if not isinstance(data, Mapping):
        raise ValidationError("Configuration must be a mapping at the top level.", "config", path.as_posix())
    return data


def load_config(config_path: Path | str | None = None) -> Dict[str, Any]:
    """Load YAML configuration merged over the defaults.

    A missing file yields the defaults; unparsable YAML or a non-mapping
    document is a `ValidationError`.
    """
    config = _copy_config_template()
    if config_path is None:
        return config
    return _merge(config, _read_yaml(Path(config_path)))


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = config.get(name)
    return value if isinstance(value, Mapping) else {}


@dataclass(slots=True)
class SessionSettings:
    """Where session logs live and how discovery caches and retries."""

    projects_root: Path = field(default_factory=lambda: Path("~/.claude/projects").expanduser())
    cache_ttl_seconds: float = 900.0
    max_retries: int = 2
    retry_delay_seconds: float = 0.075


@dataclass(slots=True)
class EngineSettings:
    """Resolved runtime settings."""

    limits: ResourceLimits = field(default_factory=ResourceLimits)
    sessions: SessionSettings = field(default_factory=SessionSettings)

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        *,
        env: Mapping[str, str] | None = None,
        explicit: Mapping[str, Any] | None = None,
    ) -> "EngineSettings":
        """Resolve settings from ``config`` with environment overrides.

        Environment values replace defaults; keys present in ``explicit`` (the
        raw user file) win over the environment.
        """
        env_mapping = os.environ if env is None else env
        user = explicit or {}
        resolved = _merge(_copy_config_template(), config)

        for variable, (section, key) in ENV_OVERRIDES.items():
            parsed = _positive_int(env_mapping.get(variable))
            if parsed is None:
                continue
            if key in _section(user, section):
                continue
            resolved[section][key] = parsed

        limits_section = _section(resolved, "limits")
        limit_values: Dict[str, int] = {}
        for limit_field in fields(ResourceLimits):
            parsed = _positive_int(limits_section.get(limit_field.name))
            if parsed is not None:
                limit_values[limit_field.name] = parsed

        sessions_section = _section(resolved, "sessions")
        root_value = env_mapping.get(PROJECTS_ROOT_ENV)
        if not root_value or "projects_root" in _section(user, "sessions"):
            root_value = sessions_section.get("projects_root") or "~/.claude/projects"
        ttl_ms = _positive_int(sessions_section.get("cache_ttl_ms")) or 15 * 60 * 1000
        retries = sessions_section.get("max_retries", 2)
        if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
            retries = 2
        delay_ms = _positive_int(sessions_section.get("retry_delay_ms")) or 75

        return cls(
            limits=ResourceLimits(**limit_values),
            sessions=SessionSettings(
                projects_root=Path(str(root_value)).expanduser(),
                cache_ttl_seconds=ttl_ms / 1000,
                max_retries=retries,
                retry_delay_seconds=delay_ms / 1000,
            ),
        )

    @classmethod
    def load(cls, config_path: Path | str | None = None, *, env: Mapping[str, str] | None = None) -> "EngineSettings":
        """Load ``config_path`` and resolve it in one step."""
        explicit = _read_yaml(Path(config_path)) if config_path is not None else {}
        return cls.from_config(_merge(_copy_config_template(), explicit), env=env, explicit=explicit)
