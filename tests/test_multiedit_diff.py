from __future__ import annotations

import pytest

from opdiff.errors import SecurityError, ToolError, ValidationError
from opdiff.generators import multi_edit_diff
from opdiff.models import Edit
from opdiff.policy.guards import ResourceLimits


def test_chained_edits_see_previous_output() -> None:
    original = 'const value = "old_value_old";'
    edits = [
        {"old_string": "old_value_old", "new_string": "intermediate_value_old"},
        {"old_string": "intermediate_value_old", "new_string": "final_value_new"},
    ]

    result = multi_edit_diff("/src/config.ts", original, edits)

    assert result.unified_diff.old_version == original
    assert result.unified_diff.new_version == 'const value = "final_value_new";'
    assert [state.content for state in result.intermediate_states] == [
        'const value = "intermediate_value_old";',
        'const value = "final_value_new";',
    ]


def test_replace_all_then_single_replacement() -> None:
    edits = [
        {"old_string": "test", "new_string": "exam", "replace_all": True},
        {"old_string": "exam", "new_string": "quiz"},
    ]

    result = multi_edit_diff("words.txt", "test test test other test", edits)

    assert result.unified_diff.new_version == "quiz exam exam other exam"


def test_edit_order_changes_the_outcome() -> None:
    forward = [Edit(old_string="a", new_string="b"), Edit(old_string="b", new_string="c")]
    backward = list(reversed(forward))

    assert multi_edit_diff("f.txt", "a", forward).unified_diff.new_version == "c"
    with pytest.raises(ToolError):
        multi_edit_diff("f.txt", "a", backward)


def test_missing_target_names_the_failing_edit() -> None:
    edits = [
        {"old_string": "alpha", "new_string": "beta"},
        {"old_string": "alpha", "new_string": "gamma"},
    ]

    with pytest.raises(ToolError) as excinfo:
        multi_edit_diff("f.txt", "alpha\n", edits)

    assert excinfo.value.message == "edit 2: 'alpha' not found"
    assert excinfo.value.tool == "MultiEdit"


def test_snapshots_and_rollback_steps_line_up_with_edits() -> None:
    edits = [
        {"old_string": "one", "new_string": "uno"},
        {"old_string": "same", "new_string": "same"},
        {"old_string": "two", "new_string": "dos"},
    ]

    result = multi_edit_diff("nums.txt", "one\nsame\ntwo\n", edits)

    assert len(result.intermediate_states) == len(edits)
    assert len(result.rollback_steps) == len(edits)
    assert result.intermediate_states[-1].content == result.unified_diff.new_version
    assert [step.edit_index for step in result.rollback_steps] == [0, 1, 2]
    assert result.rollback_steps[2].reverse_edit == Edit(old_string="dos", new_string="two", replace_all=False)

    first, noop, third = result.intermediate_states
    assert "-one\n" in first.diff_from_previous
    assert "+uno\n" in first.diff_from_previous
    assert "\tBefore edit 1\n" in first.diff_from_previous
    assert noop.diff_from_previous == ""
    assert "\tAfter edit 3\n" in third.diff_from_previous


def test_rollback_restores_original_for_single_replacements() -> None:
    original = "red green blue\n"
    edits = [
        {"old_string": "red", "new_string": "crimson"},
        {"old_string": "blue", "new_string": "navy"},
    ]

    result = multi_edit_diff("colors.txt", original, edits)

    content = result.unified_diff.new_version
    for step in reversed(result.rollback_steps):
        reverse = step.reverse_edit
        content = content.replace(reverse.old_string, reverse.new_string, 1)
    assert content == original


def test_empty_edit_list_produces_empty_diff() -> None:
    result = multi_edit_diff("f.txt", "body\n", [])

    assert result.unified_diff.diff_text == ""
    assert result.intermediate_states == []
    assert result.rollback_steps == []


def test_camel_case_edit_keys_are_accepted() -> None:
    result = multi_edit_diff("f.txt", "x x", [{"oldString": "x", "newString": "y", "replaceAll": True}])

    assert result.unified_diff.new_version == "y y"


def test_non_mapping_edit_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Invalid edit object at index 1"):
        multi_edit_diff("f.txt", "x", [{"old_string": "x", "new_string": "y"}, "oops"])


def test_non_string_edit_fields_are_rejected() -> None:
    with pytest.raises(ValidationError, match="Invalid edit at index 0"):
        multi_edit_diff("f.txt", "x", [{"old_string": 1, "new_string": "y"}])


def test_edits_must_be_a_list() -> None:
    with pytest.raises(ValidationError, match="edits must be an array"):
        multi_edit_diff("f.txt", "x", "x->y")  # type: ignore[arg-type]


def test_edit_count_is_limited() -> None:
    limits = ResourceLimits(max_edits=2)
    edits = [{"old_string": "x", "new_string": "x"}] * 3

    with pytest.raises(ValidationError, match="exceeds maximum limit of 2"):
        multi_edit_diff("f.txt", "x", edits, limits=limits)


def test_security_checks_run_before_any_edit_is_applied() -> None:
    edits = [
        {"old_string": "missing", "new_string": "fine"},
        {"old_string": "x", "new_string": "document.write('x')"},
    ]

    with pytest.raises(SecurityError):
        multi_edit_diff("f.js", "x", edits)


def test_null_replace_all_means_single_replacement() -> None:
    result = multi_edit_diff("f.txt", "a a", [{"old_string": "a", "new_string": "b", "replace_all": None}])

    assert result.edits[0].replace_all is False
    assert result.unified_diff.new_version == "b a"


def test_invalid_edit_message_names_the_failing_field() -> None:
    with pytest.raises(ValidationError, match=r"Invalid edit at index 0: .*valid boolean") as excinfo:
        multi_edit_diff("f.txt", "a", [{"old_string": "a", "new_string": "b", "replace_all": "yes"}])

    assert "must be strings" not in excinfo.value.message
