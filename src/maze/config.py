"""Configuration: frozen Config passed explicitly to runtime and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import os
import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from maze.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

load_dotenv()

DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"
DEFAULT_LOWER_BOUND_PORT = 50000
DEFAULT_UPPER_BOUND_PORT = 59999
DEFAULT_START_RETRIES = 4

_IP_RANGE_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")
_TCP_HOST_RE = re.compile(r"^tcp://([^:/]+)")


def _default_labels() -> Mapping[str, str]:
    return MappingProxyType({"test.runner": "maze"})


@dataclass(frozen=True)
class Config:
    """Immutable configuration for a test run.

    Built once at startup and handed to the runtime and helpers; nothing in
    Maze mutates it afterwards.

    Example:
        config = Config.from_env(network_name="my-cluster")
        runtime = DockerRuntime(config)
    """

    docker_host: str = DEFAULT_DOCKER_HOST
    #: Resolved from the host scheme when *None*: TLS unless a unix socket.
    tls_verify: bool | None = None
    api_version: str | None = None
    docker_binary: str = "docker"
    command_timeout_s: float = 60.0
    lower_bound_port: int = DEFAULT_LOWER_BOUND_PORT
    upper_bound_port: int = DEFAULT_UPPER_BOUND_PORT
    dns: tuple[str, ...] = ()
    dns_search: tuple[str, ...] = ()
    network_ip_range: str = "10.20.0"
    network_name: str = "technical-tests"
    extra_labels: Mapping[str, str] = field(default_factory=_default_labels)
    start_retries: int = DEFAULT_START_RETRIES
    retry_delay_s: float = 0.25

    def __post_init__(self) -> None:
        """Resolve derived defaults and validate configuration."""
        if self.tls_verify is None:
            object.__setattr__(
                self, "tls_verify", not self.docker_host.startswith("unix")
            )
        object.__setattr__(self, "dns", tuple(self.dns))
        object.__setattr__(self, "dns_search", tuple(self.dns_search))
        object.__setattr__(
            self, "extra_labels", MappingProxyType(dict(self.extra_labels))
        )

        for name in ("lower_bound_port", "upper_bound_port"):
            port = getattr(self, name)
            if not 1 <= port <= 65535:
                raise ConfigurationError(
                    f"{name} must be within 1..65535, got {port}",
                    hint="Host ports are published from this range.",
                )
        if self.lower_bound_port > self.upper_bound_port:
            raise ConfigurationError(
                f"lower_bound_port ({self.lower_bound_port}) is above "
                f"upper_bound_port ({self.upper_bound_port})",
                hint="Swap the bounds or widen the range.",
            )
        if self.start_retries < 1:
            raise ConfigurationError(
                f"start_retries must be >= 1, got {self.start_retries}",
                hint="This is the number of attempts to start a created container.",
            )
        if self.retry_delay_s < 0:
            raise ConfigurationError(
                f"retry_delay_s must be >= 0, got {self.retry_delay_s}"
            )
        if self.command_timeout_s <= 0:
            raise ConfigurationError(
                f"command_timeout_s must be > 0, got {self.command_timeout_s}",
                hint="This bounds each non-streaming docker CLI call.",
            )
        match = _IP_RANGE_RE.fullmatch(self.network_ip_range)
        if match is None or any(int(octet) > 255 for octet in match.groups()):
            raise ConfigurationError(
                f"network_ip_range must be three dotted octets, got "
                f"{self.network_ip_range!r}",
                hint="For example '10.20.0'; the network subnet becomes 10.20.0.0/24.",
            )
        if not self.network_name.strip():
            raise ConfigurationError("network_name must not be empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """Build a Config from ``DOCKER_*`` / ``MAZE_*`` variables plus overrides."""
        env: dict[str, Any] = {}
        if host := os.environ.get("DOCKER_HOST"):
            env["docker_host"] = host
        if (tls := os.environ.get("DOCKER_TLS_VERIFY")) is not None:
            env["tls_verify"] = tls == "1"
        if api_version := os.environ.get("DOCKER_API_VERSION"):
            env["api_version"] = api_version
        if binary := os.environ.get("MAZE_DOCKER_BINARY"):
            env["docker_binary"] = binary
        if network := os.environ.get("MAZE_NETWORK_NAME"):
            env["network_name"] = network

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration field(s): {', '.join(unknown)}",
                hint=f"Known fields: {', '.join(sorted(known))}",
            )
        return cls(**{**env, **overrides})

    @property
    def network_subnet(self) -> str:
        return f"{self.network_ip_range}.0/24"

    @property
    def host_name(self) -> str:
        """Host where published container ports are reachable."""
        match = _TCP_HOST_RE.match(self.docker_host)
        return match.group(1) if match else "localhost"

    def port_binding(self, port: int) -> str:
        """Publish spec mapping *port* to a host port from the configured range."""
        return f"{self.lower_bound_port}-{self.upper_bound_port}:{port}"

    def __str__(self) -> str:
        """Return a compact, developer-friendly representation."""
        return (
            f"Config(docker_host={self.docker_host!r}, "
            f"network_name={self.network_name!r}, "
            f"ports={self.lower_bound_port}-{self.upper_bound_port})"
        )

    __repr__ = __str__
