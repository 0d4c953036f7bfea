"""Diff generator for shell command executions and their reported side effects."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List, Sequence

import pydantic

from ..errors import ValidationError
from ..models import AffectedFile, BashDiff, ChangeType, SideEffect, ToolName
from ..policy import guards
from ..policy.guards import DEFAULT_LIMITS, ResourceLimits
from .base import build_unified_diff, generation, record_success

__all__ = ["bash_diff", "coerce_side_effect"]


def coerce_side_effect(raw: Any, index: int, limits: ResourceLimits = DEFAULT_LIMITS) -> SideEffect:
    """Parse one caller-observed side effect; ``index`` is 0-based."""
    if isinstance(raw, SideEffect):
        effect = raw
    elif isinstance(raw, Mapping):
        payload = dict(raw)
        path = payload.get("file_path", payload.get("filePath"))
        guards.validate_file_path(path, "file_path", limits)
        change = payload.get("change_type", payload.get("changeType"))
        if change not in {item.value for item in ChangeType} and not isinstance(change, ChangeType):
            raise ValidationError("Invalid ChangeType value", "change_type", change)
        try:
            effect = SideEffect.model_validate(payload)
        except pydantic.ValidationError as error:
            raise ValidationError(
                f"Invalid file system change at index {index}",
                "side_effects",
                error.errors(include_url=False, include_input=False),
            ) from error
    else:
        raise ValidationError("Invalid file system change object", "side_effects", type(raw).__name__)
    guards.validate_file_path(effect.file_path, "file_path", limits)
    return effect


def _affected_file(effect: SideEffect) -> AffectedFile:
    # Creation has no before state and deletion no after state.
    if (
        effect.change_type is ChangeType.UPDATE
        and effect.before_content is not None
        and effect.after_content is not None
    ):
        unified, _ = build_unified_diff(
            effect.file_path,
            effect.before_content,
            effect.after_content,
            old_header="Before",
            new_header="After",
        )
        return AffectedFile(file_path=effect.file_path, change_type=effect.change_type, unified_diff=unified)
    return AffectedFile(file_path=effect.file_path, change_type=effect.change_type)


def bash_diff(
    command: str,
    stdout: str,
    stderr: str,
    exit_code: int,
    side_effects: Sequence[SideEffect | Mapping[str, Any]] = (),
    *,
    limits: ResourceLimits = DEFAULT_LIMITS,
) -> BashDiff:
    """Describe a shell command, its output and the file changes it caused.

    Nothing is executed: the command, streams and exit code are carried
    through unchanged.
    """
    with generation(ToolName.BASH, command):
        if command is None:
            raise ValidationError("Command cannot be null or undefined", "command", None)
        if command == "":
            raise ValidationError("Command cannot be empty", "command", command)
        guards.validate_string(command, "command")
        guards.validate_string(stdout, "stdout", allow_empty=True)
        guards.validate_string(stderr, "stderr", allow_empty=True)
        guards.validate_content_size(stdout, limits, "stdout")
        guards.validate_content_size(stderr, limits, "stderr")
        guards.validate_integer(exit_code, "exit_code", minimum=0, maximum=255)
        raw_effects = guards.validate_sequence(side_effects, "side_effects")
        guards.validate_array_size(raw_effects, limits.max_side_effects, "side_effects")

        guards.check_command(command)

        effects: List[SideEffect] = [
            coerce_side_effect(raw, index, limits) for index, raw in enumerate(raw_effects)
        ]
        result = BashDiff(
            command=command,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            affected_files=[_affected_file(effect) for effect in effects],
        )
    record_success(ToolName.BASH, command)
    return result
