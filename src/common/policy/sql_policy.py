"""Admission policy for classified SQL.

Combines a ``ClassificationVerdict`` with the resolved write permissions to
decide whether a query may run.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from common.config.gateway_settings import COMPAT_POLICY_DENY, GatewaySettings
from common.policy.sql_classifier import READ_COMMANDS, ClassificationVerdict, CommandKind

# Reason codes surfaced to callers on denial
REASON_EMPTY_QUERY = "EMPTY_QUERY"
REASON_DISALLOWED_KEYWORD = "DISALLOWED_KEYWORD"
REASON_MULTIPLE_STATEMENTS = "MULTIPLE_STATEMENTS"
REASON_COMMAND_NOT_PERMITTED = "COMMAND_NOT_PERMITTED"
REASON_COMPATIBILITY_DENIED = "COMPATIBILITY_DENIED"


@dataclass(frozen=True)
class AdmissionDecision:
    """Allow/deny outcome with the reason for a denial."""

    allowed: bool
    reason: Optional[str] = None
    reason_code: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def allow(cls, warnings: Optional[List[str]] = None) -> "AdmissionDecision":
        """Build an allow decision carrying informational warnings."""
        return cls(allowed=True, warnings=list(warnings or []))

    @classmethod
    def deny(
        cls, reason: str, reason_code: str, warnings: Optional[List[str]] = None
    ) -> "AdmissionDecision":
        """Build a deny decision."""
        return cls(
            allowed=False, reason=reason, reason_code=reason_code, warnings=list(warnings or [])
        )


def permitted_commands(settings: GatewaySettings) -> List[str]:
    """Return the leading commands the current configuration accepts."""
    commands = sorted(READ_COMMANDS)
    commands.extend(
        command for command, enabled in settings.write_permissions().items() if enabled
    )
    return commands


def decide(verdict: ClassificationVerdict, settings: GatewaySettings) -> AdmissionDecision:
    """Decide whether a classified query may execute.

    A query is allowed only when its leading command is a read command (or a
    write command whose flag is enabled), no disallowed keyword appears
    anywhere in the text and it holds a single statement. Write flags are
    consulted only for the leading write command, so enabling one never
    admits a query denied for any other reason.
    """
    warnings = verdict.warning_messages

    if verdict.command == CommandKind.EMPTY:
        return AdmissionDecision.deny("Query must be a non-empty string.", REASON_EMPTY_QUERY)

    if verdict.has_disallowed_keyword:
        keywords = ", ".join(verdict.disallowed_keywords)
        return AdmissionDecision.deny(
            f"Query contains disallowed command(s): {keywords}.",
            REASON_DISALLOWED_KEYWORD,
            warnings,
        )

    if verdict.has_multiple_statements:
        return AdmissionDecision.deny(
            "Multiple statements are not allowed; submit one statement per call.",
            REASON_MULTIPLE_STATEMENTS,
            warnings,
        )

    if verdict.command == CommandKind.WRITE:
        if not settings.write_permissions().get(verdict.leading_token, False):
            return AdmissionDecision.deny(
                f"{verdict.leading_token} statements are disabled by configuration "
                f"(set MARIADB_ALLOW_{verdict.leading_token}=true to enable).",
                REASON_COMMAND_NOT_PERMITTED,
                warnings,
            )
    elif verdict.command != CommandKind.READ:
        allowed = ", ".join(permitted_commands(settings))
        return AdmissionDecision.deny(
            f"Command '{verdict.leading_token}' is not permitted. Allowed commands: {allowed}.",
            REASON_COMMAND_NOT_PERMITTED,
            warnings,
        )

    if warnings and settings.compat_warning_policy == COMPAT_POLICY_DENY:
        return AdmissionDecision.deny(
            "Query uses features unsupported by the target server: " + "; ".join(warnings),
            REASON_COMPATIBILITY_DENIED,
            warnings,
        )

    return AdmissionDecision.allow(warnings)
