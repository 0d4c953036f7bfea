"""Diff generator for single string-replacement edits."""

from __future__ import annotations

from ..diffing import apply_substitution
from ..errors import ToolError, ValidationError
from ..models import EditDiff, ToolName
from ..policy import guards
from ..policy.guards import DEFAULT_LIMITS, ResourceLimits
from .base import build_unified_diff, generation, record_success

__all__ = ["edit_diff"]


def edit_diff(
    file_path: str,
    original_content: str,
    old_string: str,
    new_string: str,
    replace_all: bool = False,
    *,
    limits: ResourceLimits = DEFAULT_LIMITS,
) -> EditDiff:
    """Describe replacing ``old_string`` with ``new_string`` in ``original_content``.

    An identical pair is a no-op with an empty diff.  An empty ``old_string``
    inserts ``new_string`` (see `insert_text`).  A non-empty ``old_string``
    that does not occur raises `ToolError`.
    """
    with generation(ToolName.EDIT, file_path):
        guards.validate_file_path(file_path, "file_path", limits)
        if original_content is None:
            raise ValidationError("Original content cannot be null or undefined", "original_content", None)
        guards.validate_string(original_content, "original_content", allow_empty=True)
        guards.validate_string(old_string, "old_string", allow_empty=True)
        guards.validate_string(new_string, "new_string", allow_empty=True)
        if not isinstance(replace_all, bool):
            raise ValidationError("replace_all must be a boolean", "replace_all", type(replace_all).__name__)

        guards.validate_content_size(original_content, limits)
        guards.validate_line_length(original_content, limits)

        if "\0" in original_content:
            raise ToolError("Cannot edit binary file content", ToolName.EDIT.value, file_path)
        if len(old_string) > limits.max_search_chars:
            raise ValidationError("Search string exceeds maximum size", "old_string", len(old_string))

        guards.check_suspicious_content(new_string)
        guards.check_script_content(new_string)

        if old_string and old_string != new_string and old_string not in original_content:
            raise ToolError("old string not found in file content", ToolName.EDIT.value, file_path)

        new_content = apply_substitution(original_content, old_string, new_string, replace_all)
        unified, strategy = build_unified_diff(file_path, original_content, new_content)
        result = EditDiff(
            old_string=old_string,
            new_string=new_string,
            replace_all=replace_all,
            unified_diff=unified,
        )
    record_success(ToolName.EDIT, file_path, unified, strategy)
    return result
