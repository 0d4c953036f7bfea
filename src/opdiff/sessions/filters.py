"""Filtering and grouping helpers for parsed operation records."""

from __future__ import annotations

import fnmatch
import posixpath
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Sequence

from ..errors import ValidationError
from ..models import ChangeType, OperationRecord

__all__ = [
    "NO_FILE_KEY",
    "filter_by_change_type",
    "filter_operations",
    "group_by_file_path",
    "matches_file_path",
    "parse_timestamp",
]

NO_FILE_KEY = "<no-file>"
_GLOB_CHARS = frozenset("*?[")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _bound(value: str, field: str) -> datetime:
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValidationError(f"Invalid timestamp format: {value}", field, value)
    return parsed


def matches_file_path(candidate: str | None, pattern: str) -> bool:
    """Match exactly, by substring, or by glob against the path or its basename."""
    if not candidate:
        return False
    if candidate == pattern or pattern in candidate:
        return True
    if _GLOB_CHARS.intersection(pattern):
        return fnmatch.fnmatchcase(candidate, pattern) or fnmatch.fnmatchcase(
            posixpath.basename(candidate), pattern
        )
    return False


def _at_or_after(record: OperationRecord, lower: datetime) -> bool:
    stamp = parse_timestamp(record.timestamp)
    return stamp is not None and stamp >= lower


def _at_or_before(record: OperationRecord, upper: datetime) -> bool:
    stamp = parse_timestamp(record.timestamp)
    return stamp is not None and stamp <= upper


def filter_operations(
    records: Sequence[OperationRecord],
    *,
    file_path: str | None = None,
    since: str | None = None,
    until: str | None = None,
    limit: int | None = None,
) -> List[OperationRecord]:
    """Apply the file path, since, until and limit filters in that order.

    Time bounds are inclusive; records whose own timestamp cannot be parsed
    never satisfy a bound.  Original ordering is preserved.
    """
    filtered = list(records)
    if file_path:
        filtered = [record for record in filtered if matches_file_path(record.file_path, file_path)]
    if since:
        lower = _bound(since, "since")
        filtered = [record for record in filtered if _at_or_after(record, lower)]
    if until:
        upper = _bound(until, "until")
        filtered = [record for record in filtered if _at_or_before(record, upper)]
    if limit is not None:
        if limit <= 0:
            return []
        filtered = filtered[:limit]
    return filtered


def filter_by_change_type(records: Iterable[OperationRecord], change_type: ChangeType | str) -> List[OperationRecord]:
    wanted = ChangeType(change_type)
    return [record for record in records if record.change_type is wanted]


def group_by_file_path(records: Iterable[OperationRecord]) -> Dict[str, List[OperationRecord]]:
    groups: Dict[str, List[OperationRecord]] = {}
    for record in records:
        groups.setdefault(record.file_path or NO_FILE_KEY, []).append(record)
    return groups
