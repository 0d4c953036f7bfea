"""Query handlers that rebuild diffs and histories from recorded sessions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .errors import FileSystemError, ToolError, ValidationError
from .generators import generate_tool_diff
from .models import BashHistory, BashHistoryItem, ChangeType, OperationDiff, OperationRecord, ToolName
from .policy.guards import DEFAULT_LIMITS, ResourceLimits
from .sessions.discovery import SessionDiscovery
from .sessions.filters import filter_operations
from .sessions.log_parser import ToolExchange, exchange_record, find_tool_exchange, iter_tool_exchanges

__all__ = [
    "DEFAULT_LIST_LIMIT",
    "MAX_LIST_LIMIT",
    "list_bash_history",
    "list_file_changes",
    "locate_session",
    "show_operation_diff",
    "summarize_bash_output",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000


def _read_session_lines(session_file: Path | str) -> List[str]:
    path = Path(session_file)
    try:
        with path.open("r", encoding="utf-8") as handle:
            return handle.read().split("\n")
    except (OSError, UnicodeDecodeError) as error:
        raise FileSystemError(f"Cannot read session file: {error}", path.as_posix(), "read") from error


def _validate_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_LIST_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_LIST_LIMIT}", "limit", limit)
    return limit


def locate_session(discovery: SessionDiscovery, tool_use_id: str, max_retries: int = 2) -> Path:
    """Resolve the session file that recorded ``tool_use_id``."""
    info = discovery.find_session_by_tool_use_id(tool_use_id, max_retries=max_retries)
    if info is None:
        raise FileSystemError(f"Session file not found for tool use ID: {tool_use_id}", None, "locate")
    return Path(info.session_file)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _bash_exit_code(result: Mapping[str, Any]) -> int:
    code = result.get("exitCode")
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return 1 if result.get("interrupted") else 0


def _diff_payload(exchange: ToolExchange) -> Dict[str, Any]:
    """Map a recorded tool input and result onto generator parameters."""
    data = exchange.input
    result = exchange.result or {}
    tool = exchange.name

    if tool == ToolName.EDIT.value:
        original = result.get("originalFile")
        if not isinstance(original, str):
            original = data.get("old_string")
        return {
            "file_path": data.get("file_path"),
            "original_content": original,
            "old_string": data.get("old_string"),
            "new_string": data.get("new_string"),
            "replace_all": False if data.get("replace_all") is None else data["replace_all"],
        }
    if tool == ToolName.MULTI_EDIT.value:
        original = result.get("originalFileContents", result.get("originalFile"))
        if not isinstance(original, str):
            raise ToolError(
                "Original file content was not recorded for this operation",
                tool,
                exchange.tool_use_id,
            )
        return {"file_path": data.get("file_path"), "original_content": original, "edits": data.get("edits")}
    if tool == ToolName.WRITE.value:
        previous = result.get("originalFile") if result.get("type") == "update" else None
        content = data.get("content", result.get("content"))
        return {"file_path": data.get("file_path"), "previous_content": previous, "new_content": content}
    if tool == ToolName.BASH.value:
        return {
            "command": data.get("command"),
            "stdout": _text(result.get("stdout")),
            "stderr": _text(result.get("stderr")),
            "exit_code": _bash_exit_code(result),
        }
    if tool == ToolName.READ.value:
        recorded = result.get("file")
        recorded = recorded if isinstance(recorded, Mapping) else {}
        return {
            "file_path": data.get("file_path"),
            "content": _text(recorded.get("content")),
            "offset": data.get("offset"),
            "limit": data.get("limit"),
            "lines_read": recorded.get("numLines"),
        }
    return dict(data)


def show_operation_diff(
    session_file: Path | str,
    operation_id: str,
    *,
    limits: ResourceLimits | None = None,
) -> OperationDiff:
    """Rebuild the diff for one logged tool call.

    Raises `ToolError` when the session holds no such operation and
    `ValidationError` for tools that have no diff generator.
    """
    if not isinstance(operation_id, str) or not operation_id.strip():
        raise ValidationError("Operation ID is required", "operation_id", operation_id)
    exchange = find_tool_exchange(_read_session_lines(session_file), operation_id)
    if exchange is None:
        raise ToolError(f"Operation with ID {operation_id} not found", None, operation_id)
    if exchange.result is None:
        LOGGER.debug("Operation %s has no recorded result", operation_id)

    diff = generate_tool_diff(exchange.name, _diff_payload(exchange), limits=limits or DEFAULT_LIMITS)
    record = exchange_record(exchange)
    return OperationDiff(
        operation_id=record.id,
        timestamp=record.timestamp,
        tool=record.tool,
        file_path=record.file_path,
        summary=record.summary,
        change_type=record.change_type,
        diff=diff,
    )


def list_file_changes(
    session_file: Path | str,
    *,
    file_path: str | None = None,
    since: str | None = None,
    until: str | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
) -> List[OperationRecord]:
    """Return the file-modifying operations of a session in log order."""
    _validate_limit(limit)
    records = [exchange_record(exchange) for exchange in iter_tool_exchanges(_read_session_lines(session_file))]
    changes = [record for record in records if record.file_path and record.change_type is not ChangeType.READ]
    return filter_operations(changes, file_path=file_path, since=since, until=until, limit=limit)


def summarize_bash_output(stdout: str, stderr: str, exit_code: int) -> str:
    """Return the first meaningful output line of a command."""
    if exit_code != 0 and stderr:
        for line in stderr.split("\n"):
            if line.strip():
                return line
    for line in stdout.split("\n"):
        if line.strip():
            return line
    return "Command executed"


def list_bash_history(session_file: Path | str, *, limit: int = DEFAULT_LIST_LIMIT) -> BashHistory:
    """Return the shell commands of a session, newest first."""
    _validate_limit(limit)
    items: List[BashHistoryItem] = []
    for exchange in iter_tool_exchanges(_read_session_lines(session_file)):
        if exchange.name != ToolName.BASH.value:
            continue
        result = exchange.result or {}
        exit_code = _bash_exit_code(result)
        items.append(
            BashHistoryItem(
                id=exchange.tool_use_id,
                timestamp=exchange.timestamp,
                command=_text(exchange.input.get("command")),
                exit_code=exit_code,
                summary=summarize_bash_output(_text(result.get("stdout")), _text(result.get("stderr")), exit_code),
            )
        )
    items.reverse()
    return BashHistory(
        commands=items[:limit],
        total_count=len(items),
        has_more=len(items) > limit,
        limit=limit,
    )
