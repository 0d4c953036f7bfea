"""Parse session logs into operation records.

Two line formats are understood and may be mixed in one stream:

* legacy entries ``{"timestamp", "tool", "parameters", "result"?}``, one
  operation per line;
* transcript entries written by the host, where an ``assistant`` message
  carries ``tool_use`` items and a later ``user`` message carries the
  matching ``tool_result`` plus a ``toolUseResult`` payload.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping

from ..errors import DiffEngineError
from ..models import ChangeType, OperationRecord

__all__ = [
    "LogParseError",
    "ParseResult",
    "ToolExchange",
    "change_type_for",
    "exchange_record",
    "extract_file_path",
    "find_tool_exchange",
    "iter_tool_exchanges",
    "parse_log_entry",
    "parse_log_stream",
    "summarize",
]

FILE_TOOLS = frozenset({"Edit", "Write", "Read", "MultiEdit", "Delete"})
FILE_PATH_KEYS = ("file_path", "filepath", "path", "filePath")

TOOL_CHANGE_TYPES: Dict[str, ChangeType] = {
    "Write": ChangeType.CREATE,
    "Edit": ChangeType.UPDATE,
    "MultiEdit": ChangeType.UPDATE,
    "Delete": ChangeType.DELETE,
    "Read": ChangeType.READ,
    "Bash": ChangeType.READ,
    "Grep": ChangeType.READ,
    "Glob": ChangeType.READ,
}

_TRANSCRIPT_TYPES = frozenset({"assistant", "user", "system", "summary"})
_ISO_UTC = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?Z$")


class LogParseError(DiffEngineError):
    """A log line could not be turned into an operation record."""

    kind = "LogParseError"

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message, details={"line_number": line_number})
        self.line_number = line_number


@dataclass(slots=True)
class ParseResult:
    operations: List[OperationRecord] = field(default_factory=list)
    skipped_count: int = 0
    total_processed: int = 0


@dataclass(slots=True)
class ToolExchange:
    """One ``tool_use`` and, once recorded, the result the host stored for it."""

    tool_use_id: str
    timestamp: str
    name: str
    input: Mapping[str, Any]
    result: Mapping[str, Any] | None = None


def extract_file_path(tool: str, parameters: Mapping[str, Any]) -> str | None:
    if tool not in FILE_TOOLS:
        return None
    for key in FILE_PATH_KEYS:
        value = parameters.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def summarize(tool: str, parameters: Mapping[str, Any], file_path: str | None = None) -> str:
    """Return the one-line human summary shown for an operation."""
    if file_path:
        return f"{tool} operation on {file_path}"
    if tool == "Bash":
        command = parameters.get("command")
        return f"Bash command: {command if isinstance(command, str) else 'unknown command'}"
    if tool in {"Grep", "Glob"}:
        pattern = parameters.get("pattern")
        return f"{tool} search for pattern: {pattern if isinstance(pattern, str) else 'unknown pattern'}"
    return f"{tool} operation"


def change_type_for(tool: str) -> ChangeType:
    return TOOL_CHANGE_TYPES.get(tool, ChangeType.READ)


def _is_valid_timestamp(value: Any) -> bool:
    if not isinstance(value, str) or not _ISO_UTC.match(value):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def _record(identifier: str, timestamp: str, tool: str, parameters: Mapping[str, Any]) -> OperationRecord:
    file_path = extract_file_path(tool, parameters)
    return OperationRecord(
        id=identifier,
        timestamp=timestamp,
        tool=tool,
        file_path=file_path,
        summary=summarize(tool, parameters, file_path),
        change_type=change_type_for(tool),
    )


def _decode(line: str) -> Any:
    try:
        return json.loads(line)
    except ValueError as error:
        raise LogParseError("Invalid JSON format") from error


def _record_from_legacy(entry: Any, validate_timestamp: bool) -> OperationRecord:
    if not isinstance(entry, Mapping):
        raise LogParseError("Log entry must be a JSON object")
    for required in ("timestamp", "tool", "parameters"):
        if not entry.get(required):
            raise LogParseError(f"Missing required field: {required}")
    parameters = entry["parameters"]
    if not isinstance(parameters, Mapping):
        raise LogParseError("Invalid parameters type")
    if validate_timestamp and not _is_valid_timestamp(entry["timestamp"]):
        raise LogParseError(f"Invalid timestamp format: {entry['timestamp']}")
    return _record(str(uuid.uuid4()), str(entry["timestamp"]), str(entry["tool"]), parameters)


def parse_log_entry(line: str, *, validate_timestamp: bool = False) -> OperationRecord:
    """Parse a single legacy log line; every call assigns a fresh operation id."""
    return _record_from_legacy(_decode(line), validate_timestamp)


def _is_transcript_entry(entry: Any) -> bool:
    return isinstance(entry, Mapping) and (entry.get("type") in _TRANSCRIPT_TYPES or "message" in entry)


def _content_items(entry: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    message = entry.get("message")
    content = message.get("content") if isinstance(message, Mapping) else None
    if not isinstance(content, list):
        return []
    return [item for item in content if isinstance(item, Mapping)]


def _tool_uses(entry: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    if entry.get("type") != "assistant":
        return []
    return [item for item in _content_items(entry) if item.get("type") == "tool_use" and item.get("id")]


def _result_ids(entry: Mapping[str, Any]) -> List[str]:
    ids: List[str] = []
    direct = entry.get("tool_use_id")
    if isinstance(direct, str):
        ids.append(direct)
    if entry.get("type") == "user":
        for item in _content_items(entry):
            candidate = item.get("tool_use_id")
            if isinstance(candidate, str):
                ids.append(candidate)
    return ids


def _exchange_input(item: Mapping[str, Any]) -> Mapping[str, Any]:
    value = item.get("input")
    return value if isinstance(value, Mapping) else {}


def parse_log_stream(
    text: str,
    *,
    skip_malformed: bool = True,
    max_entries: int = 0,
    validate_timestamp: bool = False,
) -> ParseResult:
    """Parse newline-delimited log text, detecting the format line by line.

    Blank lines are ignored.  With ``skip_malformed`` false the first bad line
    raises `LogParseError` prefixed with its 1-based line number.
    ``max_entries`` of 0 means no limit.
    """
    result = ParseResult()
    if not text or not text.strip():
        return result

    for number, raw in enumerate(text.split("\n"), start=1):
        line = raw.strip()
        if not line:
            continue
        result.total_processed += 1
        if max_entries > 0 and len(result.operations) >= max_entries:
            break
        try:
            entry = _decode(line)
            if _is_transcript_entry(entry):
                timestamp = str(entry.get("timestamp") or "")
                for item in _tool_uses(entry):
                    name = str(item.get("name") or "Unknown")
                    result.operations.append(_record(str(item["id"]), timestamp, name, _exchange_input(item)))
            else:
                result.operations.append(_record_from_legacy(entry, validate_timestamp))
        except LogParseError as error:
            if skip_malformed:
                result.skipped_count += 1
                continue
            raise LogParseError(f"Line {number}: {error.message}", number) from error

    if max_entries > 0:
        del result.operations[max_entries:]
    return result


def _legacy_exchange(entry: Mapping[str, Any]) -> ToolExchange | None:
    parameters = entry.get("parameters")
    if not entry.get("tool") or not isinstance(parameters, Mapping):
        return None
    result = entry.get("result")
    return ToolExchange(
        tool_use_id=str(uuid.uuid4()),
        timestamp=str(entry.get("timestamp") or ""),
        name=str(entry["tool"]),
        input=parameters,
        result=result if isinstance(result, Mapping) else None,
    )


def exchange_record(exchange: ToolExchange) -> OperationRecord:
    """Return the operation record describing ``exchange``."""
    return _record(exchange.tool_use_id, exchange.timestamp, exchange.name, exchange.input)


def iter_tool_exchanges(lines: Iterable[str]) -> List[ToolExchange]:
    """Pair every ``tool_use`` with its recorded result, in log order.

    Legacy lines become exchanges of their own under a fresh id.  Undecodable
    lines are skipped.
    """
    exchanges: Dict[str, ToolExchange] = {}
    for line in lines:
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except ValueError:
            continue
        if not isinstance(entry, Mapping):
            continue
        if not _is_transcript_entry(entry):
            legacy = _legacy_exchange(entry)
            if legacy is not None:
                exchanges[legacy.tool_use_id] = legacy
            continue
        for item in _tool_uses(entry):
            identifier = str(item["id"])
            exchanges[identifier] = ToolExchange(
                tool_use_id=identifier,
                timestamp=str(entry.get("timestamp") or ""),
                name=str(item.get("name") or "Unknown"),
                input=_exchange_input(item),
            )
        payload = entry.get("toolUseResult")
        result_ids = _result_ids(entry)
        # A batched entry has one payload for several results; it belongs to none of them.
        if len(result_ids) == 1 and isinstance(payload, Mapping):
            exchange = exchanges.get(result_ids[0])
            if exchange is not None:
                exchange.result = payload
    return list(exchanges.values())


def find_tool_exchange(lines: Iterable[str], tool_use_id: str) -> ToolExchange | None:
    """Return the exchange recorded for ``tool_use_id``, or None when absent."""
    for exchange in iter_tool_exchanges(lines):
        if exchange.tool_use_id == tool_use_id:
            return exchange
    return None
