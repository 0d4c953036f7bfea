"""Typed results produced by the diff generators and the session collaborators."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "AffectedFile",
    "BashDiff",
    "BashHistory",
    "BashHistoryItem",
    "ChangeType",
    "Edit",
    "EditDiff",
    "IntermediateState",
    "MultiEditDiff",
    "OperationDiff",
    "OperationRecord",
    "ReadDiff",
    "RollbackStep",
    "TOOL_DIFF_ADAPTER",
    "SideEffect",
    "ToolDiff",
    "ToolName",
    "UnifiedDiff",
    "WriteDiff",
    "to_document",
]


class ResultModel(BaseModel):
    """Immutable base model exposed to callers as camelCase documents."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class InputModel(ResultModel):
    """Caller-supplied structure parsed without type coercion."""

    model_config = ConfigDict(strict=True)


class ChangeType(str, Enum):
    """Coarse classification of an operation's effect."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"


class ToolName(str, Enum):
    """Tools whose recorded actions can be rendered as a diff."""

    EDIT = "Edit"
    WRITE = "Write"
    MULTI_EDIT = "MultiEdit"
    BASH = "Bash"
    READ = "Read"


class UnifiedDiff(ResultModel):
    """Both full text versions of a file plus the rendered patch."""

    filename: str
    old_version: str
    new_version: str
    diff_text: str


class Edit(InputModel):
    """Single substitution; applied to the output of the previous edit."""

    old_string: str
    new_string: str
    replace_all: bool = False

    @field_validator("replace_all", mode="before")
    @classmethod
    def _null_means_single(cls, value: Any) -> Any:
        # Logged inputs may carry an explicit null.
        return False if value is None else value

    def reversed(self) -> "Edit":
        """Return the best-effort inverse.

        Not a true inverse when ``replace_all`` is set: distinct original
        occurrences collapsed into one value cannot be told apart again.
        """
        return Edit(old_string=self.new_string, new_string=self.old_string, replace_all=self.replace_all)


class IntermediateState(ResultModel):
    content: str
    diff_from_previous: str


class RollbackStep(ResultModel):
    edit_index: int
    reverse_edit: Edit


class SideEffect(InputModel):
    """File change attributed to a shell command by the caller."""

    file_path: str
    change_type: ChangeType = Field(strict=False)
    before_content: Optional[str] = None
    after_content: Optional[str] = None


class AffectedFile(ResultModel):
    file_path: str
    change_type: ChangeType
    unified_diff: Optional[UnifiedDiff] = None


class EditDiff(ResultModel):
    tool: Literal["Edit"] = "Edit"
    old_string: str
    new_string: str
    replace_all: bool
    unified_diff: UnifiedDiff


class WriteDiff(ResultModel):
    tool: Literal["Write"] = "Write"
    is_new_file: bool
    new_content: str
    previous_content: Optional[str] = None
    unified_diff: UnifiedDiff


class MultiEditDiff(ResultModel):
    tool: Literal["MultiEdit"] = "MultiEdit"
    edits: List[Edit]
    unified_diff: UnifiedDiff
    intermediate_states: Optional[List[IntermediateState]] = None
    rollback_steps: Optional[List[RollbackStep]] = None


class BashDiff(ResultModel):
    tool: Literal["Bash"] = "Bash"
    command: str
    stdout: str
    stderr: str
    exit_code: int
    affected_files: List[AffectedFile] = Field(default_factory=list)


class ReadDiff(ResultModel):
    tool: Literal["Read"] = "Read"
    content: str
    lines_read: int
    start_line: Optional[int] = None
    end_line: Optional[int] = None


ToolDiff = Annotated[
    Union[EditDiff, WriteDiff, MultiEditDiff, BashDiff, ReadDiff],
    Field(discriminator="tool"),
]

TOOL_DIFF_ADAPTER: TypeAdapter[Any] = TypeAdapter(ToolDiff)


class OperationRecord(ResultModel):
    """Operation parsed from a session log."""

    id: str
    timestamp: str
    tool: str
    file_path: Optional[str] = None
    summary: str
    change_type: ChangeType


class OperationDiff(ResultModel):
    """Logged operation together with its rebuilt tool diff."""

    operation_id: str
    timestamp: str
    tool: str
    file_path: Optional[str] = None
    summary: str
    change_type: ChangeType
    diff: ToolDiff


class BashHistoryItem(ResultModel):
    id: str
    timestamp: str
    command: str
    exit_code: int
    summary: str


class BashHistory(ResultModel):
    """Page of shell commands, newest first."""

    commands: List[BashHistoryItem]
    total_count: int
    has_more: bool
    limit: int


def to_document(model: BaseModel) -> Dict[str, Any]:
    """Serialise a result into a JSON-style document with camelCase keys."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
