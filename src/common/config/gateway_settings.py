"""Resolved gateway configuration.

Settings are read once from the process environment (``MARIADB_*``) and frozen.
Every pipeline stage reads the same ``GatewaySettings`` instance.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from common.config.env import get_env_bool, get_env_int, get_env_str
from common.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "MARIADB_"

DEFAULT_PORT = 3306
DEFAULT_TIMEOUT_MS = 10000
DEFAULT_ROW_LIMIT = 1000
DEFAULT_POOL_SIZE = 2

COMPAT_POLICY_WARN = "warn"
COMPAT_POLICY_DENY = "deny"
COMPAT_POLICIES = {COMPAT_POLICY_WARN, COMPAT_POLICY_DENY}


@dataclass(frozen=True)
class GatewaySettings:
    """Immutable connection target, credentials and safety limits."""

    host: str
    user: str
    password: str
    port: int = DEFAULT_PORT
    database: Optional[str] = None
    allow_insert: bool = False
    allow_update: bool = False
    allow_delete: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    row_limit: int = DEFAULT_ROW_LIMIT
    debug_sql: bool = False
    pool_size: int = DEFAULT_POOL_SIZE
    compat_warning_policy: str = COMPAT_POLICY_WARN

    def __post_init__(self) -> None:
        """Reject missing credentials and out-of-range limits."""
        missing = [
            ENV_PREFIX + name.upper()
            for name in ("host", "user", "password")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}."
            )
        if not 1 <= self.port <= 65535:
            raise ConfigurationError(f"{ENV_PREFIX}PORT must be in 1..65535, got {self.port}.")
        if self.timeout_ms <= 0:
            raise ConfigurationError(
                f"{ENV_PREFIX}TIMEOUT_MS must be positive, got {self.timeout_ms}."
            )
        if self.row_limit < 0:
            raise ConfigurationError(
                f"{ENV_PREFIX}ROW_LIMIT must be zero or positive, got {self.row_limit}."
            )
        if self.pool_size < 1:
            raise ConfigurationError(
                f"{ENV_PREFIX}POOL_SIZE must be at least 1, got {self.pool_size}."
            )
        if self.compat_warning_policy not in COMPAT_POLICIES:
            allowed = ", ".join(sorted(COMPAT_POLICIES))
            raise ConfigurationError(
                f"{ENV_PREFIX}COMPAT_WARNING_POLICY must be one of {allowed}, "
                f"got '{self.compat_warning_policy}'."
            )

    @property
    def timeout_seconds(self) -> float:
        """Connection and acquisition timeout in seconds."""
        return self.timeout_ms / 1000.0

    def write_permissions(self) -> Dict[str, bool]:
        """Return the write flag for each conditionally writable command."""
        return {
            "INSERT": self.allow_insert,
            "UPDATE": self.allow_update,
            "DELETE": self.allow_delete,
        }

    def redacted(self) -> Dict[str, Any]:
        """Return settings safe to log (password masked)."""
        data = asdict(self)
        data["password"] = "***"
        data["database"] = self.database or "(default not set)"
        return data

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        """Build settings from ``MARIADB_*`` environment variables.

        Raises:
            ConfigurationError: when a required variable is absent or any value
                cannot be parsed.
        """
        try:
            settings = cls(
                host=get_env_str(ENV_PREFIX + "HOST", required=True),
                port=get_env_int(ENV_PREFIX + "PORT", DEFAULT_PORT),
                user=get_env_str(ENV_PREFIX + "USER", required=True),
                password=get_env_str(ENV_PREFIX + "PASSWORD", required=True),
                database=get_env_str(ENV_PREFIX + "DATABASE"),
                allow_insert=get_env_bool(ENV_PREFIX + "ALLOW_INSERT", False),
                allow_update=get_env_bool(ENV_PREFIX + "ALLOW_UPDATE", False),
                allow_delete=get_env_bool(ENV_PREFIX + "ALLOW_DELETE", False),
                timeout_ms=get_env_int(ENV_PREFIX + "TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
                row_limit=get_env_int(ENV_PREFIX + "ROW_LIMIT", DEFAULT_ROW_LIMIT),
                debug_sql=get_env_bool(ENV_PREFIX + "DEBUG_SQL", False),
                pool_size=get_env_int(ENV_PREFIX + "POOL_SIZE", DEFAULT_POOL_SIZE),
                compat_warning_policy=(
                    get_env_str(ENV_PREFIX + "COMPAT_WARNING_POLICY", COMPAT_POLICY_WARN)
                    .strip()
                    .lower()
                ),
            )
        except KeyError as exc:
            raise ConfigurationError(exc.args[0] if exc.args else str(exc)) from exc
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        logger.info("MariaDB configuration: %s", settings.redacted())
        return settings
