"""Diff generator for whole-file writes (creation or full overwrite)."""

from __future__ import annotations

import posixpath
import re

from ..errors import ValidationError
from ..models import ToolName, WriteDiff
from ..policy import guards
from ..policy.guards import DEFAULT_LIMITS, ResourceLimits
from .base import build_unified_diff, generation, record_success

__all__ = ["write_diff"]

_INVALID_FILENAME_CHARS = re.compile(r"[<>:|?*]")
_DEVICE_PREFIX = "/dev/"


def _basename(file_path: str) -> str:
    return posixpath.basename(file_path.replace("\\", "/"))


def write_diff(
    file_path: str,
    previous_content: str | None,
    new_content: str,
    *,
    limits: ResourceLimits = DEFAULT_LIMITS,
) -> WriteDiff:
    """Describe writing ``new_content``; ``previous_content`` is None for a new file."""
    with generation(ToolName.WRITE, file_path):
        guards.validate_file_path(file_path, "file_path", limits)
        if not isinstance(new_content, str):
            raise ValidationError("New content must be a string", "new_content", type(new_content).__name__)
        if previous_content is not None:
            guards.validate_string(previous_content, "previous_content", allow_empty=True)

        guards.validate_content_size(new_content, limits, "new_content")
        if len(new_content) <= limits.quick_check_threshold:
            guards.validate_line_length(new_content, limits)

        name = _basename(file_path)
        if _INVALID_FILENAME_CHARS.search(name):
            raise ValidationError("Filename contains invalid characters", "file_path", file_path)
        if not posixpath.splitext(name)[1] and not file_path.startswith(_DEVICE_PREFIX):
            raise ValidationError("File extension required for content type detection", "file_path", file_path)

        guards.check_suspicious_content(new_content)
        guards.check_script_content(new_content)

        is_new_file = previous_content is None
        unified, strategy = build_unified_diff(
            file_path,
            "" if is_new_file else previous_content,
            new_content,
            old_label="/dev/null" if is_new_file else file_path,
            old_header="New file" if is_new_file else "Original",
            new_header="Written",
        )
        result = WriteDiff(
            is_new_file=is_new_file,
            new_content=new_content,
            previous_content=previous_content,
            unified_diff=unified,
        )
    record_success(ToolName.WRITE, file_path, unified, strategy)
    return result
