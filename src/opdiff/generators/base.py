"""Shared plumbing for the per-tool diff generators."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Tuple

from ..diffing import DiffStrategy, render_unified_diff, select_strategy
from ..errors import DiffEngineError, guard_tool
from ..models import ToolName, UnifiedDiff
from ..telemetry import TELEMETRY_LOGGER, emit_event

__all__ = ["build_unified_diff", "generation", "record_success"]


def _target_label(target: Any) -> str | None:
    return target if isinstance(target, str) else None


@contextmanager
def generation(tool: ToolName, target: Any) -> Iterator[None]:
    """Apply the error policy for one generator call and report failures."""
    try:
        with guard_tool(tool.value, target):
            yield
    except DiffEngineError as error:
        emit_event(
            "diff.failed",
            tool=tool,
            target=_target_label(target),
            kind=error.kind,
            message=error.message,
        )
        raise


def record_success(
    tool: ToolName,
    target: Any,
    unified: UnifiedDiff | None = None,
    strategy: DiffStrategy | None = None,
) -> None:
    if not TELEMETRY_LOGGER.isEnabledFor(logging.INFO):
        return
    fields: dict[str, Any] = {"tool": tool, "target": _target_label(target)}
    if unified is not None:
        fields["strategy"] = strategy
        fields["old_chars"] = len(unified.old_version)
        fields["new_chars"] = len(unified.new_version)
        fields["diff_chars"] = len(unified.diff_text)
    emit_event("diff.generated", **fields)


def build_unified_diff(
    filename: str,
    old: str,
    new: str,
    *,
    old_label: str | None = None,
    old_header: str = "Original",
    new_header: str = "Modified",
) -> Tuple[UnifiedDiff, DiffStrategy]:
    """Render ``old`` -> ``new`` for ``filename`` into a `UnifiedDiff`.

    Returns the strategy used alongside the diff so callers can report it.
    """
    strategy = select_strategy(old, new)
    diff_text = render_unified_diff(
        old,
        new,
        old_label=old_label or filename,
        new_label=filename,
        old_header=old_header,
        new_header=new_header,
        strategy=strategy,
    )
    unified = UnifiedDiff(filename=filename, old_version=old, new_version=new, diff_text=diff_text)
    return unified, strategy
