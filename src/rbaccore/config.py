"""Configuration contract for rbaccore.

Pydantic-validated settings for the decoration layer: logging, policy
identifier syntax, grouping digest, and the Redis-backed policy store.

Direct os.environ/os.getenv usage is only allowed inside
:func:`load_config_from_env`. Everything else receives an ``RbacConfig``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


DEFAULT_POLICY_PREFIX = "acl"
DEFAULT_WILDCARD = "_"
DEFAULT_DIGEST_ALGORITHM = "md5"
DEFAULT_POLICY_NAMESPACE = "rbac:policies"


class RbacConfig(BaseModel):
    """Settings for permission decoration.

    Policy identifiers look like ``{policy_prefix}.{segment}.{segment}...``
    where any segment may be the ``wildcard`` marker.
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    # Policy identifier syntax
    policy_prefix: str = Field(
        default=DEFAULT_POLICY_PREFIX,
        description="Root of every policy identifier (the global default policy)",
    )
    wildcard: str = Field(
        default=DEFAULT_WILDCARD,
        description="Segment value matching any concrete value at its position",
    )

    # Grouping
    digest_algorithm: str = Field(
        default=DEFAULT_DIGEST_ALGORITHM,
        description="hashlib algorithm used to fold a resolved chain into a group key",
    )
    verify_shared_chains: bool = Field(
        default=True,
        description="Compare full resolved chains before sharing a decorated description",
    )

    # Policy store
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for the policy store (e.g., redis://localhost:6379/0)",
    )
    policy_namespace: str = Field(
        default=DEFAULT_POLICY_NAMESPACE,
        description="Redis key namespace holding one key per policy identifier",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("policy_prefix")
    @classmethod
    def validate_policy_prefix(cls, v: str) -> str:
        if not v or v.startswith(".") or v.endswith("."):
            raise ValueError("Policy prefix must be non-empty and must not start or end with '.'")
        return v

    @field_validator("wildcard")
    @classmethod
    def validate_wildcard(cls, v: str) -> str:
        if len(v) != 1 or v == ".":
            raise ValueError("Wildcard must be a single character other than '.'")
        return v

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate Redis URL format."""
        if v is None:
            return v
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with redis://, rediss://, or unix://")
        return v

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


def _env_flag(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def load_config_from_env() -> RbacConfig:
    """Load configuration from environment variables.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - RBAC_POLICY_PREFIX: Policy identifier prefix (default: acl)
    - RBAC_WILDCARD: Wildcard segment marker (default: _)
    - RBAC_DIGEST_ALGORITHM: hashlib algorithm name (default: md5)
    - RBAC_VERIFY_SHARED_CHAINS: Guard shared groups against digest collisions
    - REDIS_URL: Redis connection URL for the policy store
    - RBAC_POLICY_NAMESPACE: Redis key namespace for policy identifiers

    Returns:
        RbacConfig instance with values from environment or defaults.

    Raises:
        ConfigurationError: if an environment value fails validation.
    """
    import os

    try:
        return RbacConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_flag(os.getenv("LOG_JSON", "false")),
            policy_prefix=os.getenv("RBAC_POLICY_PREFIX", DEFAULT_POLICY_PREFIX),
            wildcard=os.getenv("RBAC_WILDCARD", DEFAULT_WILDCARD),
            digest_algorithm=os.getenv("RBAC_DIGEST_ALGORITHM", DEFAULT_DIGEST_ALGORITHM),
            verify_shared_chains=_env_flag(os.getenv("RBAC_VERIFY_SHARED_CHAINS", "true")),
            redis_url=os.getenv("REDIS_URL"),
            policy_namespace=os.getenv("RBAC_POLICY_NAMESPACE", DEFAULT_POLICY_NAMESPACE),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid rbaccore environment configuration: {e}", errors=e.errors()) from e


__all__ = [
    "DEFAULT_DIGEST_ALGORITHM",
    "DEFAULT_POLICY_NAMESPACE",
    "DEFAULT_POLICY_PREFIX",
    "DEFAULT_WILDCARD",
    "LogLevel",
    "RbacConfig",
    "load_config_from_env",
]
