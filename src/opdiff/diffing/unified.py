"""Size-aware unified diff rendering.

Exact line diffs are superlinear in input size, so the renderer picks one of
three strategies from the combined input size:

* ``EXACT`` renders a classic unified diff.
* ``SUMMARY`` replaces hunks with line/character counts and a short preview
  of the new version when either side is long.
* ``TRUNCATED`` diffs a bounded prefix of each side and marks the output.

Identical inputs always render byte-identical output.
"""

from __future__ import annotations

import difflib
from enum import Enum
from typing import List

__all__ = [
    "DiffStrategy",
    "FULL_DIFF_MAX_CHARS",
    "NO_NEWLINE_MARKER",
    "SUMMARY_LINE_THRESHOLD",
    "SUMMARY_PREVIEW_LINES",
    "TRUNCATION_MARKER",
    "render_unified_diff",
    "select_strategy",
]

FULL_DIFF_MAX_CHARS = 1024 * 1024
SUMMARY_LINE_THRESHOLD = 1000
SUMMARY_PREVIEW_LINES = 5
DEFAULT_CONTEXT_LINES = 3
NO_NEWLINE_MARKER = "\\ No newline at end of file"
TRUNCATION_MARKER = "# ... content truncated for performance"


class DiffStrategy(str, Enum):
    """How a pair of versions is rendered."""

    EXACT = "exact"
    SUMMARY = "summary"
    TRUNCATED = "truncated"


def _line_count(text: str) -> int:
    return text.count("\n") + 1


def select_strategy(old: str, new: str) -> DiffStrategy:
    """Choose the rendering strategy for ``old`` -> ``new``."""
    if len(old) + len(new) < FULL_DIFF_MAX_CHARS:
        return DiffStrategy.EXACT
    if _line_count(old) > SUMMARY_LINE_THRESHOLD or _line_count(new) > SUMMARY_LINE_THRESHOLD:
        return DiffStrategy.SUMMARY
    return DiffStrategy.TRUNCATED


def _split_lines(text: str) -> List[str]:
    """Split on LF only, keeping terminators; a final partial line stays bare."""
    if not text:
        return []
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _exact_diff(
    old: str,
    new: str,
    *,
    old_label: str,
    new_label: str,
    old_header: str,
    new_header: str,
    context: int,
) -> str:
    rendered: List[str] = []
    for line in difflib.unified_diff(
        _split_lines(old),
        _split_lines(new),
        fromfile=old_label,
        tofile=new_label,
        fromfiledate=old_header,
        tofiledate=new_header,
        n=context,
        lineterm="\n",
    ):
        if line.endswith("\n"):
            rendered.append(line)
        else:
            rendered.append(f"{line}\n{NO_NEWLINE_MARKER}\n")
    return "".join(rendered)


def _summary_diff(
    old: str,
    new: str,
    *,
    old_label: str,
    new_label: str,
    old_header: str,
    new_header: str,
) -> str:
    old_lines = old.split("\n")
    new_lines = new.split("\n")
    delta = len(new_lines) - len(old_lines)
    signed_delta = f"+{delta}" if delta > 0 else str(delta)
    summary = [
        f"--- {old_label}\t{old_header}",
        f"+++ {new_label}\t{new_header}",
        f"@@ -1,{len(old_lines)} +1,{len(new_lines)} @@",
        "# Large file modification summary:",
        f"# Old: {len(old_lines)} lines ({len(old)} chars)",
        f"# New: {len(new_lines)} lines ({len(new)} chars)",
        f"# Change: {signed_delta} lines",
        "# First few lines:",
    ]
    summary.extend(f"+{line}" for line in new_lines[:SUMMARY_PREVIEW_LINES])
    if len(new_lines) > SUMMARY_PREVIEW_LINES:
        summary.append(f"# ... and {len(new_lines) - SUMMARY_PREVIEW_LINES} more lines")
    return "\n".join(summary) + "\n"


def render_unified_diff(
    old: str,
    new: str,
    *,
    old_label: str,
    new_label: str,
    old_header: str = "Original",
    new_header: str = "Modified",
    context: int = DEFAULT_CONTEXT_LINES,
    strategy: DiffStrategy | None = None,
) -> str:
    """Render ``old`` -> ``new`` as unified diff text; empty when they are equal.

    ``strategy`` overrides the size-based choice of `select_strategy`.
    The truncated form always carries the file headers, even when the
    bounded prefixes match.
    """
    if old == new:
        return ""
    labels = {
        "old_label": old_label,
        "new_label": new_label,
        "old_header": old_header,
        "new_header": new_header,
    }
    if strategy is None:
        strategy = select_strategy(old, new)
    if strategy is DiffStrategy.EXACT:
        return _exact_diff(old, new, context=context, **labels)
    if strategy is DiffStrategy.SUMMARY:
        return _summary_diff(old, new, **labels)
    window = FULL_DIFF_MAX_CHARS // 2
    hunks = _exact_diff(_line_window(old, window), _line_window(new, window), context=context, **labels)
    header = f"--- {old_label}\t{old_header}\n+++ {new_label}\t{new_header}\n"
    if hunks:
        hunks = hunks.split("\n", 2)[2]
    return f"{header}{hunks}{TRUNCATION_MARKER}\n"


def _line_window(text: str, window: int) -> str:
    """Prefix of ``text`` of at most ``window`` chars, cut at a line boundary when possible."""
    if len(text) <= window:
        return text
    cut = text.rfind("\n", 0, window) + 1
    return text[: cut or window]
