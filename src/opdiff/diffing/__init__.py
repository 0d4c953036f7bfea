"""Text diffing primitives shared by the generators."""

from .replace import apply_substitution, insert_text, replace_text
from .unified import DiffStrategy, render_unified_diff, select_strategy

__all__ = [
    "DiffStrategy",
    "apply_substitution",
    "insert_text",
    "render_unified_diff",
    "replace_text",
    "select_strategy",
]
