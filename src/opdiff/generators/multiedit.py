"""Sequential multi-edit engine.

Edits are applied in order, each against the output of the previous one.
After every edit the engine records an `IntermediateState` snapshot and a
best-effort `RollbackStep`.  The summary diff is computed once, directly from
the original content to the final content.

A failing edit aborts the whole call: later edits are not applied and no
partial result is returned.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List, Sequence

import pydantic

from ..diffing import apply_substitution, render_unified_diff
from ..errors import ToolError, ValidationError
from ..models import Edit, IntermediateState, MultiEditDiff, RollbackStep, ToolName
from ..policy import guards
from ..policy.guards import DEFAULT_LIMITS, ResourceLimits
from .base import build_unified_diff, generation, record_success

__all__ = ["coerce_edit", "multi_edit_diff"]


def coerce_edit(raw: Any, index: int) -> Edit:
    """Parse one caller-supplied edit; ``index`` is 0-based."""
    if isinstance(raw, Edit):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Invalid edit object at index {index}", "edits", type(raw).__name__)
    try:
        return Edit.model_validate(dict(raw))
    except pydantic.ValidationError as error:
        problems = error.errors(include_url=False, include_input=False)
        first = problems[0]
        field = ".".join(str(part) for part in first["loc"]) or "edit"
        raise ValidationError(
            f"Invalid edit at index {index}: {field}: {first['msg']}",
            "edits",
            problems,
        ) from error


def _missing_label(edit: Edit) -> str:
    excerpt = edit.old_string if len(edit.old_string) <= 80 else edit.old_string[:77] + "..."
    return repr(excerpt)


def multi_edit_diff(
    file_path: str,
    original_content: str,
    edits: Sequence[Edit | Mapping[str, Any]],
    *,
    limits: ResourceLimits = DEFAULT_LIMITS,
) -> MultiEditDiff:
    """Apply ``edits`` in order to ``original_content`` and describe the result."""
    with generation(ToolName.MULTI_EDIT, file_path):
        guards.validate_file_path(file_path, "file_path", limits)
        guards.validate_string(original_content, "original_content", allow_empty=True)
        raw_edits = guards.validate_sequence(edits, "edits")

        guards.validate_content_size(original_content, limits)
        if len(original_content) < limits.line_check_max_chars:
            guards.validate_line_length(original_content, limits)
        guards.validate_array_size(raw_edits, limits.max_edits, "edits")

        normalised: List[Edit] = []
        for index, raw in enumerate(raw_edits):
            edit = coerce_edit(raw, index)
            guards.check_suspicious_content(edit.new_string)
            guards.check_script_content(edit.new_string)
            normalised.append(edit)

        current = original_content
        states: List[IntermediateState] = []
        rollback: List[RollbackStep] = []
        for index, edit in enumerate(normalised):
            previous = current
            if edit.old_string != edit.new_string:
                if edit.old_string and edit.old_string not in current:
                    raise ToolError(
                        f"edit {index + 1}: {_missing_label(edit)} not found",
                        ToolName.MULTI_EDIT.value,
                        file_path,
                    )
                current = apply_substitution(current, edit.old_string, edit.new_string, edit.replace_all)
            states.append(
                IntermediateState(
                    content=current,
                    diff_from_previous=render_unified_diff(
                        previous,
                        current,
                        old_label=file_path,
                        new_label=file_path,
                        old_header=f"Before edit {index + 1}",
                        new_header=f"After edit {index + 1}",
                    ),
                )
            )
            rollback.append(RollbackStep(edit_index=index, reverse_edit=edit.reversed()))

        unified, strategy = build_unified_diff(file_path, original_content, current)
        result = MultiEditDiff(
            edits=normalised,
            unified_diff=unified,
            intermediate_states=states,
            rollback_steps=rollback,
        )
    record_success(ToolName.MULTI_EDIT, file_path, unified, strategy)
    return result
