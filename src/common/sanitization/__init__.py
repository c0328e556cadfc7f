"""Sanitization utilities."""

from .text import bound_public_message, redact_sensitive_info

__all__ = ["bound_public_message", "redact_sensitive_info"]
