"""Session log discovery, parsing and filtering."""

from .cache import CacheStats, SessionCache, SessionInfo
from .discovery import SessionDiscovery
from .filters import filter_by_change_type, filter_operations, group_by_file_path
from .log_parser import (
    LogParseError,
    ParseResult,
    ToolExchange,
    find_tool_exchange,
    iter_tool_exchanges,
    parse_log_entry,
    parse_log_stream,
)

__all__ = [
    "CacheStats",
    "LogParseError",
    "ParseResult",
    "SessionCache",
    "SessionDiscovery",
    "SessionInfo",
    "ToolExchange",
    "filter_by_change_type",
    "filter_operations",
    "group_by_file_path",
    "find_tool_exchange",
    "iter_tool_exchanges",
    "parse_log_entry",
    "parse_log_stream",
]
