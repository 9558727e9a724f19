"""
Configuration for the Cisco Perfmon Client
==========================================

PerfmonConfig holds the instance-level defaults every request is built
from. It is frozen: a client never changes its configuration after
construction.

Environment variables read by PerfmonConfig.from_env():

    CUCM_HOSTNAME        server to send perfmon requests to (required)
    CUCM_USERNAME        AXL/perfmon user
    CUCM_PASSWORD        password for CUCM_USERNAME
    CUCM_COOKIE          continuation cookie used instead of user/password
    PERFMON_RETRIES      maximum attempt count per request (default 3)
    PERFMON_RETRY_DELAY  delay between attempts in milliseconds (default 3000)

"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .exceptions import PerfmonConfigurationError

logger = logging.getLogger("cisco-perfmon")

DEFAULT_PORT = 8443
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 3.0


@dataclass(frozen=True)
class PerfmonConfig:
    """
    Connection, authentication and retry settings for a PerfmonClient.

    Attributes:
        host: Server hosting the perfmon service (usually the publisher)
        username: Basic-auth username, unused when cookie is set
        password: Basic-auth password, unused when cookie is set
        cookie: Continuation cookie from an earlier response
        port: HTTPS port (default: 8443)
        max_attempts: Total attempts per read operation, the first one included
        retry_delay: Seconds to wait between attempts
        retry_mutations: Also retry open/add/remove/close (default: False)
        timeout: Optional requests timeout, None waits indefinitely
        auth_headers: Extra headers merged into every request. A Cookie or
            Authorization entry authenticates the client on its own
    """

    host: str
    username: Optional[str] = None
    password: Optional[str] = None
    cookie: Optional[str] = None
    port: int = DEFAULT_PORT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    retry_mutations: bool = False
    timeout: Optional[Any] = None
    auth_headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.host:
            raise PerfmonConfigurationError("host is required", details={"parameter": "host"})

        has_basic_auth = bool(self.username) and self.password is not None
        if not (self.cookie or has_basic_auth or self.header_credentials):
            raise PerfmonConfigurationError(
                "Either username and password, a cookie or a Cookie/Authorization auth header is required",
                details={"parameter": "username/password/cookie"},
            )

        if self.max_attempts < 1:
            raise PerfmonConfigurationError(
                "max_attempts must be >= 1",
                details={"parameter": "max_attempts", "value": self.max_attempts},
            )

        if self.retry_delay < 0:
            raise PerfmonConfigurationError(
                "retry_delay must be >= 0",
                details={"parameter": "retry_delay", "value": self.retry_delay},
            )

        if not 0 < self.port < 65536:
            raise PerfmonConfigurationError(
                "port must be between 1 and 65535",
                details={"parameter": "port", "value": self.port},
            )

    @property
    def header_credentials(self) -> bool:
        """True when auth_headers carry a Cookie or Authorization header."""
        return any(name.lower() in ("cookie", "authorization") for name in self.auth_headers)

    @property
    def base_url(self) -> str:
        host = self.host
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"https://{host}:{self.port}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "PerfmonConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ
            **overrides: Values that take precedence over the environment

        Returns:
            Validated PerfmonConfig

        Raises:
            PerfmonConfigurationError: If a variable is missing or not a number
        """
        env = os.environ if environ is None else environ

        values: dict[str, Any] = {
            "host": env.get("CUCM_HOSTNAME", ""),
            "username": env.get("CUCM_USERNAME"),
            "password": env.get("CUCM_PASSWORD"),
            "cookie": env.get("CUCM_COOKIE"),
        }

        if "PERFMON_RETRIES" in env:
            values["max_attempts"] = _parse_number(env, "PERFMON_RETRIES", int)
        if "PERFMON_RETRY_DELAY" in env:
            values["retry_delay"] = _parse_number(env, "PERFMON_RETRY_DELAY", float) / 1000

        values.update(overrides)
        logger.debug(f"🔧 Loaded perfmon configuration for {values['host'] or '<unset>'}")
        return cls(**values)


def _parse_number(env: Mapping[str, str], name: str, kind: type) -> Any:
    raw = env[name]
    try:
        return kind(raw)
    except ValueError as e:
        raise PerfmonConfigurationError(
            f"{name} must be a number",
            details={"parameter": name, "value": raw},
        ) from e


__all__ = ["DEFAULT_MAX_ATTEMPTS", "DEFAULT_PORT", "DEFAULT_RETRY_DELAY", "PerfmonConfig"]
