"""Per-tool diff generators and the dispatch table keyed by tool name."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Tuple

from pydantic.alias_generators import to_camel

from ..errors import ValidationError
from ..models import ToolName
from ..policy.guards import DEFAULT_LIMITS, ResourceLimits
from .bash import bash_diff
from .edit import edit_diff
from .multiedit import multi_edit_diff
from .read import read_diff
from .write import write_diff

__all__ = [
    "GENERATORS",
    "bash_diff",
    "edit_diff",
    "generate_tool_diff",
    "multi_edit_diff",
    "read_diff",
    "write_diff",
]

GENERATORS: Dict[ToolName, Callable[..., Any]] = {
    ToolName.EDIT: edit_diff,
    ToolName.WRITE: write_diff,
    ToolName.MULTI_EDIT: multi_edit_diff,
    ToolName.BASH: bash_diff,
    ToolName.READ: read_diff,
}

# (parameter, required) in call order.
_PARAMETERS: Dict[ToolName, Tuple[Tuple[str, bool], ...]] = {
    ToolName.EDIT: (
        ("file_path", True),
        ("original_content", True),
        ("old_string", True),
        ("new_string", True),
        ("replace_all", False),
    ),
    ToolName.WRITE: (("file_path", True), ("previous_content", False), ("new_content", True)),
    ToolName.MULTI_EDIT: (("file_path", True), ("original_content", True), ("edits", True)),
    ToolName.BASH: (
        ("command", True),
        ("stdout", True),
        ("stderr", True),
        ("exit_code", True),
        ("side_effects", False),
    ),
    ToolName.READ: (
        ("file_path", True),
        ("content", True),
        ("offset", False),
        ("limit", False),
        ("lines_read", False),
    ),
}


def _resolve_tool(tool: ToolName | str) -> ToolName:
    try:
        return ToolName(tool)
    except ValueError:
        raise ValidationError(f"Unsupported tool: {tool}", "tool", tool) from None


def generate_tool_diff(
    tool: ToolName | str,
    payload: Mapping[str, Any],
    *,
    limits: ResourceLimits = DEFAULT_LIMITS,
) -> Any:
    """Dispatch ``payload`` to the generator registered for ``tool``.

    Payload keys may use either snake_case or camelCase spelling.
    """
    name = _resolve_tool(tool)
    if not isinstance(payload, Mapping):
        raise ValidationError("Payload must be a mapping", "payload", type(payload).__name__)
    arguments: Dict[str, Any] = {}
    for parameter, required in _PARAMETERS[name]:
        if parameter in payload:
            arguments[parameter] = payload[parameter]
        elif to_camel(parameter) in payload:
            arguments[parameter] = payload[to_camel(parameter)]
        elif required:
            raise ValidationError(f"Missing required parameter: {parameter}", parameter, None)
    return GENERATORS[name](**arguments, limits=limits)
