from __future__ import annotations

import pytest

from opdiff.errors import SecurityError, ToolError, ValidationError
from opdiff.generators import edit_diff
from opdiff.policy.guards import ResourceLimits


def test_edit_replaces_first_occurrence_and_renders_diff() -> None:
    original = "def greet():\n    return 'hi'\n\ngreet()\ngreet()\n"

    result = edit_diff("/src/app.py", original, "greet()", "welcome()")

    unified = result.unified_diff
    assert result.tool == "Edit"
    assert unified.filename == "/src/app.py"
    assert unified.old_version == original
    assert unified.new_version == "def welcome():\n    return 'hi'\n\ngreet()\ngreet()\n"
    assert unified.diff_text.startswith("--- /src/app.py\tOriginal\n+++ /src/app.py\tModified\n")
    assert "-def greet():\n" in unified.diff_text
    assert "+def welcome():\n" in unified.diff_text


def test_edit_replace_all_rewrites_every_occurrence() -> None:
    result = edit_diff("notes.txt", "a-a-a", "a", "b", replace_all=True)

    assert result.replace_all is True
    assert result.unified_diff.new_version == "b-b-b"


def test_identical_strings_are_a_noop() -> None:
    result = edit_diff("notes.txt", "unchanged\n", "unchanged", "unchanged")

    assert result.unified_diff.new_version == "unchanged\n"
    assert result.unified_diff.diff_text == ""


def test_empty_search_string_fills_first_empty_block() -> None:
    result = edit_diff("main.js", "function f() {\n}\n", "", "  return 1;")

    assert result.unified_diff.new_version == "function f() {\n  return 1;\n}\n"


def test_empty_search_string_appends_without_empty_block() -> None:
    result = edit_diff("main.txt", "first\n", "", "second\n")

    assert result.unified_diff.new_version == "first\nsecond\n"


def test_missing_search_string_raises_tool_error() -> None:
    with pytest.raises(ToolError) as excinfo:
        edit_diff("notes.txt", "alpha\n", "omega", "beta")

    assert excinfo.value.to_dict()["kind"] == "ToolError"
    assert excinfo.value.tool == "Edit"


@pytest.mark.parametrize(
    ("file_path", "message"),
    [
        (None, "File path cannot be null or undefined"),
        ("   ", "File path cannot be empty"),
        (42, "File path must be a string"),
    ],
)
def test_invalid_file_paths_are_rejected(file_path: object, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        edit_diff(file_path, "content", "content", "other")  # type: ignore[arg-type]


def test_nul_in_path_is_a_security_error() -> None:
    with pytest.raises(SecurityError) as excinfo:
        edit_diff("bad\0name.txt", "content", "content", "other")

    assert excinfo.value.risk_type == "path_traversal"


def test_missing_original_content_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Original content cannot be null"):
        edit_diff("notes.txt", None, "a", "b")  # type: ignore[arg-type]


def test_non_boolean_replace_all_is_rejected() -> None:
    with pytest.raises(ValidationError, match="replace_all must be a boolean"):
        edit_diff("notes.txt", "a", "a", "b", replace_all="yes")  # type: ignore[arg-type]


def test_binary_content_is_rejected() -> None:
    with pytest.raises(ToolError, match="binary"):
        edit_diff("blob.bin", "abc\0def", "abc", "xyz")


def test_content_over_limit_is_rejected() -> None:
    limits = ResourceLimits(max_content_chars=10)

    with pytest.raises(ValidationError, match="maximum size limit of 10"):
        edit_diff("notes.txt", "x" * 11, "x", "y", limits=limits)


def test_long_lines_are_rejected() -> None:
    limits = ResourceLimits(max_line_length=5)

    with pytest.raises(ValidationError) as excinfo:
        edit_diff("notes.txt", "ok\ntoo long line\n", "ok", "fine", limits=limits)

    assert excinfo.value.field == "line_length"
    assert excinfo.value.value == "Line 2: 13 characters"


def test_oversized_search_string_is_rejected() -> None:
    limits = ResourceLimits(max_search_chars=3)

    with pytest.raises(ValidationError, match="Search string exceeds"):
        edit_diff("notes.txt", "abcd", "abcd", "x", limits=limits)


def test_script_in_replacement_is_rejected() -> None:
    with pytest.raises(SecurityError) as excinfo:
        edit_diff("page.html", "<body></body>", "<body>", "<body><script>alert(1)</script>")

    assert excinfo.value.risk_type == "malicious_script"


def test_obfuscated_eval_is_flagged_as_suspicious() -> None:
    with pytest.raises(SecurityError) as excinfo:
        edit_diff("page.js", "let x;", "let x;", "eval(atob('ZXZpbA=='))")

    assert excinfo.value.risk_type == "suspicious_pattern"
