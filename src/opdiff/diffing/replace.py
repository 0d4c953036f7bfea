"""String substitution primitives used by the Edit and MultiEdit generators."""

from __future__ import annotations

__all__ = [
    "EMPTY_BLOCK",
    "LARGE_CONTENT_CHARS",
    "apply_substitution",
    "insert_text",
    "replace_text",
]

LARGE_CONTENT_CHARS = 100_000
EMPTY_BLOCK = "{\n}"


def insert_text(content: str, new_string: str) -> str:
    """Insert ``new_string`` for an edit whose search string is empty.

    Inherited tool quirk rather than a general insertion API: the first
    literal empty brace block receives the text, otherwise it is appended.
    """
    if EMPTY_BLOCK in content:
        return content.replace(EMPTY_BLOCK, "{\n" + new_string + "\n}", 1)
    return content + new_string


def replace_text(content: str, old_string: str, new_string: str, replace_all: bool = False) -> str:
    """Replace the first (or every non-overlapping) occurrence of ``old_string``.

    Content without a match is returned unchanged.
    """
    if replace_all:
        return content.replace(old_string, new_string)
    index = content.find(old_string)
    if index == -1:
        return content
    if len(content) < LARGE_CONTENT_CHARS:
        return content.replace(old_string, new_string, 1)
    return "".join((content[:index], new_string, content[index + len(old_string) :]))


def apply_substitution(content: str, old_string: str, new_string: str, replace_all: bool = False) -> str:
    """Apply one edit, including the no-op and empty-search cases.

    Callers check that a non-empty ``old_string`` occurs in ``content`` first.
    """
    if old_string == new_string:
        return content
    if old_string == "":
        return insert_text(content, new_string)
    return replace_text(content, old_string, new_string, replace_all)
