"""Diff generator for read-only operations."""

from __future__ import annotations

from ..errors import FileSystemError, ToolError
from ..models import ReadDiff, ToolName
from ..policy import guards
from ..policy.guards import DEFAULT_LIMITS, ResourceLimits
from .base import generation, record_success

__all__ = ["read_diff"]

_REPLACEMENT_CHAR = "\ufffd"


def read_diff(
    file_path: str,
    content: str | None,
    offset: int | None = None,
    limit: int | None = None,
    lines_read: int | None = None,
    *,
    limits: ResourceLimits = DEFAULT_LIMITS,
) -> ReadDiff:
    """Describe reading ``content`` from ``file_path``; no diff is produced.

    ``offset`` is 0-based.  Range metadata is only reported when ``limit`` is
    supplied.
    """
    with generation(ToolName.READ, file_path):
        guards.validate_file_path(file_path, "file_path", limits)
        text = "" if content is None else guards.validate_string(content, "content", allow_empty=True)
        guards.validate_content_size(text, limits)

        if offset is not None:
            guards.validate_integer(offset, "offset", minimum=0, message="Offset must be a non-negative number")
        if limit is not None:
            guards.validate_integer(limit, "limit", minimum=1, message="Limit must be a positive number")
        if lines_read is not None:
            guards.validate_integer(lines_read, "lines_read", minimum=0)

        if "\0" in text:
            raise ToolError("Cannot read binary file as text", ToolName.READ.value, file_path)
        if _REPLACEMENT_CHAR in text:
            raise FileSystemError("File encoding is not supported", file_path, "encoding")

        if lines_read is None:
            lines_read = len(text.split("\n")) if text else 0

        start_line = end_line = None
        if limit is not None:
            start_line = offset + 1 if offset is not None else 1
            end_line = start_line + limit - 1

        result = ReadDiff(content=text, lines_read=lines_read, start_line=start_line, end_line=end_line)
    record_success(ToolName.READ, file_path)
    return result
