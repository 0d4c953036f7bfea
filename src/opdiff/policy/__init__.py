"""Validation and content policy for diff generation."""

from .guards import DEFAULT_LIMITS, SECURITY_RULES, ResourceLimits, SecurityRule

__all__ = ["DEFAULT_LIMITS", "ResourceLimits", "SECURITY_RULES", "SecurityRule"]
