"""Input, resource and content policy checks applied before any diff work.

The checks fall into three groups:

``validate_*``
    Type and range checks on caller input.  Failures raise
    ``ValidationError`` and are always caller-correctable.

``ResourceLimits``
    Ceilings on content size, line length and array lengths.  They act as
    admission control: oversized requests are rejected before the renderer
    or the edit engine does any expensive work.

``SECURITY_RULES``
    Registry of pattern-based content rules.  A match raises
    ``SecurityError``; the engine never executes anything, so these rules are
    a policy filter rather than a sandbox.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, List, Pattern, Sequence

from ..errors import SecurityError, ValidationError

__all__ = [
    "DEFAULT_LIMITS",
    "ResourceLimits",
    "SECURITY_RULES",
    "SecurityRule",
    "check_command",
    "check_script_content",
    "check_suspicious_content",
    "validate_array_size",
    "validate_content_size",
    "validate_file_path",
    "validate_integer",
    "validate_line_length",
    "validate_sequence",
    "validate_string",
]

MIB = 1024 * 1024


@dataclass(slots=True, frozen=True)
class ResourceLimits:
    """Size ceilings enforced on every generator call."""

    max_content_chars: int = 50 * MIB
    max_line_length: int = 32_768
    max_edits: int = 1_000
    max_side_effects: int = 1_000
    max_path_length: int = 500
    max_search_chars: int = 50_000
    line_check_max_chars: int = 10 * MIB
    quick_check_threshold: int = 50_000


DEFAULT_LIMITS = ResourceLimits()


@dataclass(slots=True, frozen=True)
class SecurityRule:
    """Pattern-based content rule and the risk it guards against."""

    code: str
    risk_type: str
    title: str
    pattern: Pattern[str]


SECURITY_RULES: Dict[str, SecurityRule] = {
    "SCR001": SecurityRule("SCR001", "malicious_script", "Inline script tag", re.compile(r"<script[^>]*>", re.I)),
    "SCR002": SecurityRule("SCR002", "malicious_script", "javascript: URL", re.compile(r"javascript:", re.I)),
    "SCR003": SecurityRule("SCR003", "malicious_script", "eval call", re.compile(r"eval\s*\(", re.I)),
    "SCR004": SecurityRule("SCR004", "malicious_script", "base64 decode call", re.compile(r"atob\s*\(", re.I)),
    "SCR005": SecurityRule("SCR005", "malicious_script", "base64 encode call", re.compile(r"btoa\s*\(", re.I)),
    "SCR006": SecurityRule("SCR006", "malicious_script", "document.write", re.compile(r"document\.write", re.I)),
    "SCR007": SecurityRule("SCR007", "malicious_script", "innerHTML assignment", re.compile(r"innerHTML\s*=", re.I)),
    "SUS001": SecurityRule(
        "SUS001", "suspicious_pattern", "eval of decoded payload", re.compile(r"eval\s*\(\s*atob\s*\(", re.I)
    ),
    "SUS002": SecurityRule(
        "SUS002",
        "suspicious_pattern",
        "Function constructor from string",
        re.compile(r"Function\s*\(\s*['\"`][^'\"`]*['\"`]\s*\)", re.I),
    ),
    "SUS003": SecurityRule(
        "SUS003",
        "suspicious_pattern",
        "setTimeout with string body",
        re.compile(r"setTimeout\s*\(\s*['\"`][^'\"`]*['\"`]", re.I),
    ),
    "SUS004": SecurityRule(
        "SUS004",
        "suspicious_pattern",
        "setInterval with string body",
        re.compile(r"setInterval\s*\(\s*['\"`][^'\"`]*['\"`]", re.I),
    ),
    "CMD001": SecurityRule(
        "CMD001",
        "dangerous_command",
        "Recursive delete of the filesystem root",
        re.compile(r"\brm\s+-(?:rf|fr)\s+/(?:\*)?(?=\s|$|;|&|\|)"),
    ),
    "CMD002": SecurityRule("CMD002", "dangerous_command", "Format system drive", re.compile(r"format\s+c:", re.I)),
    "CMD003": SecurityRule(
        "CMD003", "dangerous_command", "Shell fork bomb", re.compile(r":\s*\(\s*\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;\s*:")
    ),
    "CMD004": SecurityRule(
        "CMD004", "dangerous_command", "Filesystem creation on a device", re.compile(r"\bmkfs(?:\.\w+)?\s+\S*/dev/")
    ),
}

_SCRIPT_RULES = tuple(rule for rule in SECURITY_RULES.values() if rule.risk_type == "malicious_script")
_SUSPICIOUS_RULES = tuple(rule for rule in SECURITY_RULES.values() if rule.risk_type == "suspicious_pattern")
_COMMAND_RULES = tuple(rule for rule in SECURITY_RULES.values() if rule.risk_type == "dangerous_command")


def validate_file_path(value: Any, field: str = "file_path", limits: ResourceLimits = DEFAULT_LIMITS) -> str:
    """Return ``value`` when it is a usable file path."""
    if value is None:
        raise ValidationError("File path cannot be null or undefined", field, value)
    if not isinstance(value, str):
        raise ValidationError("File path must be a string", field, type(value).__name__)
    if not value.strip():
        raise ValidationError("File path cannot be empty", field, value)
    if "\0" in value:
        raise SecurityError("File path contains invalid characters", "path_traversal", value)
    if len(value) > limits.max_path_length:
        raise ValidationError("File path exceeds maximum length", field, len(value))
    return value


def validate_string(value: Any, field: str, *, allow_empty: bool = False) -> str:
    if value is None:
        raise ValidationError(f"{field} cannot be null or undefined", field, value)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field, type(value).__name__)
    if not allow_empty and not value.strip():
        raise ValidationError(f"{field} cannot be empty", field, value)
    return value


def validate_integer(
    value: Any,
    field: str,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
    message: str | None = None,
) -> int:
    """Return ``value`` when it is an int within ``[minimum, maximum]``.

    ``message`` replaces the generic wording for type and lower-bound failures,
    which is how read offsets and limits get their caller-facing messages.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(message or f"{field} must be an integer", field, type(value).__name__)
    if minimum is not None and value < minimum:
        raise ValidationError(message or f"{field} must be at least {minimum}", field, value)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field} must be at most {maximum}", field, value)
    return value


def validate_sequence(value: Any, field: str) -> List[Any]:
    if value is None:
        raise ValidationError(f"{field} must be an array", field, value)
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
        raise ValidationError(f"{field} must be an array", field, type(value).__name__)
    return list(value)


def validate_array_size(items: Sequence[Any], maximum: int, field: str) -> None:
    if len(items) > maximum:
        raise ValidationError(f"Number of {field} exceeds maximum limit of {maximum}", field, len(items))


def validate_content_size(content: str, limits: ResourceLimits = DEFAULT_LIMITS, field: str = "content") -> None:
    if len(content) > limits.max_content_chars:
        raise ValidationError(
            f"Content exceeds maximum size limit of {limits.max_content_chars} characters",
            field,
            f"{len(content)} characters",
        )


def validate_line_length(content: str, limits: ResourceLimits = DEFAULT_LIMITS) -> None:
    maximum = limits.max_line_length
    if len(content) <= maximum:
        return
    for number, line in enumerate(content.split("\n"), start=1):
        if len(line) > maximum:
            raise ValidationError(
                "Line length exceeds maximum limit",
                "line_length",
                f"Line {number}: {len(line)} characters",
            )


def _check_rules(text: str, rules: Sequence[SecurityRule], message: str) -> None:
    for rule in rules:
        if rule.pattern.search(text):
            raise SecurityError(message, rule.risk_type, text)


def check_script_content(text: str) -> None:
    """Reject content carrying a known script-injection pattern."""
    _check_rules(text, _SCRIPT_RULES, "Potentially malicious content detected")


def check_suspicious_content(text: str) -> None:
    """Reject content carrying a known obfuscated-execution pattern."""
    _check_rules(text, _SUSPICIOUS_RULES, "Suspicious content pattern detected")


def check_command(command: str) -> None:
    """Reject shell commands matching a recognised destructive pattern."""
    _check_rules(command, _COMMAND_RULES, "Command contains potentially dangerous operations")
