"""Error taxonomy shared by every diff generator."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping

__all__ = [
    "DiffEngineError",
    "FileSystemError",
    "KNOWN_ERRORS",
    "SecurityError",
    "ToolError",
    "ValidationError",
    "error_document",
    "guard_tool",
]

_EXCERPT_CHARS = 100


def _json_safe(value: Any) -> Any:
    """Convert detail payload values into JSON-friendly representations."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _json_safe(child) for key, child in value.items()}
    return repr(value)


class DiffEngineError(RuntimeError):
    """Base class for errors raised while generating an operation diff."""

    kind = "DiffEngineError"

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = {key: _json_safe(value) for key, value in (details or {}).items()}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "details": dict(self.details)}


class ValidationError(DiffEngineError):
    """Malformed or out-of-range caller input; always caller-correctable."""

    kind = "ValidationError"

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        super().__init__(message, details={"field": field, "value": value})
        self.field = field
        self.value = value


class FileSystemError(DiffEngineError):
    """Path, permission or encoding problem surfaced from the data layer."""

    kind = "FileSystemError"

    def __init__(self, message: str, path: str | None = None, operation: str | None = None) -> None:
        super().__init__(message, details={"path": path, "operation": operation})
        self.path = path
        self.operation = operation


class SecurityError(DiffEngineError):
    """Content failed a policy check. Never downgraded or swallowed."""

    kind = "SecurityError"

    def __init__(self, message: str, risk_type: str | None = None, excerpt: str | None = None) -> None:
        if excerpt is not None:
            excerpt = excerpt[:_EXCERPT_CHARS]
        super().__init__(message, details={"risk_type": risk_type, "excerpt": excerpt})
        self.risk_type = risk_type
        self.excerpt = excerpt


class ToolError(DiffEngineError):
    """Tool-specific semantic failure, also used to wrap unexpected errors."""

    kind = "ToolError"

    def __init__(self, message: str, tool: str | None = None, target: str | None = None) -> None:
        super().__init__(message, details={"tool": tool, "target": target})
        self.tool = tool
        self.target = target


KNOWN_ERRORS: tuple[type[DiffEngineError], ...] = (
    ValidationError,
    FileSystemError,
    SecurityError,
    ToolError,
)


@contextmanager
def guard_tool(tool: str, target: Any) -> Iterator[None]:
    """Pass taxonomy errors through unchanged and wrap anything else as `ToolError`."""
    try:
        yield
    except KNOWN_ERRORS:
        raise
    except Exception as error:
        label = target if isinstance(target, str) else None
        raise ToolError(f"Failed to generate {tool.lower()} diff: {error}", tool, label) from error


def error_document(error: DiffEngineError) -> dict[str, Any]:
    """Return the single error envelope rendered for a failed call."""
    return {"error": error.to_dict()}
