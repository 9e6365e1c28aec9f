"""Runtime protocol: the container operations Maze relies on."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Mapping


def normalize_image(image: str) -> str:
    """Return *image* with an explicit tag, defaulting to ``latest``.

    A colon inside a registry host (``registry:5000/app``) is not a tag.
    """
    name = image.rsplit("/", 1)[-1]
    if ":" in name or "@" in name:
        return image
    return f"{image}:latest"


@dataclass(frozen=True)
class ContainerOptions:
    """What to create: image plus resource and network options."""

    image: str
    name: str | None = None
    command: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)
    labels: Mapping[str, str] = field(default_factory=dict)
    network: str | None = None
    dns: tuple[str, ...] = ()
    dns_search: tuple[str, ...] = ()
    #: Publish specs such as ``"50000-59999:8080"``.
    ports: tuple[str, ...] = ()
    cap_add: tuple[str, ...] = ("NET_ADMIN",)
    privileged: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "image", normalize_image(self.image))


@dataclass(frozen=True)
class ProcessOutput:
    """Exit code and output lines of a command run inside a container."""

    exit_code: int
    lines: list[str]


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ContainerState(_Model):
    status: str = Field(default="unknown", alias="Status")
    running: bool = Field(default=False, alias="Running")
    exit_code: int = Field(default=0, alias="ExitCode")


class EndpointSettings(_Model):
    ip_address: str = Field(default="", alias="IPAddress")


class NetworkSettings(_Model):
    networks: dict[str, EndpointSettings] = Field(
        default_factory=dict, alias="Networks"
    )


class ContainerInfo(_Model):
    """The subset of ``docker inspect`` output Maze reads."""

    id: str = Field(alias="Id")
    name: str = Field(default="", alias="Name")
    state: ContainerState = Field(default_factory=ContainerState, alias="State")
    network_settings: NetworkSettings = Field(
        default_factory=NetworkSettings, alias="NetworkSettings"
    )

    @property
    def is_running(self) -> bool:
        return self.state.running

    def ip_address(self, network: str) -> str | None:
        endpoint = self.network_settings.networks.get(network)
        if endpoint is None or not endpoint.ip_address:
            return None
        return endpoint.ip_address


@runtime_checkable
class ContainerRuntime(Protocol):
    """Minimal container runtime protocol consumed by Maze helpers."""

    def image_exists(self, image: str) -> bool:
        """Whether *image* is available locally."""
        ...

    def pull_image(self, image: str) -> int:
        """Pull *image*; return the number of progress events observed."""
        ...

    def create_container(self, options: ContainerOptions) -> str:
        """Create a container (pulling its image if absent); return its id."""
        ...

    def start_container(self, container_id: str) -> None:
        """Start a created container. May fail transiently right after creation."""
        ...

    def stop_container(self, container_id: str) -> None:
        """Stop a container and wait for it to exit."""
        ...

    def kill_container(self, container_id: str, signal: str = "KILL") -> None:
        """Send *signal* to a container immediately."""
        ...

    def remove_container(self, container_id: str, *, force: bool = True) -> None:
        """Remove a container and its volumes."""
        ...

    def exec_command(self, container_id: str, argv: list[str]) -> ProcessOutput:
        """Run *argv* inside a container; capture exit code and output."""
        ...

    def get_logs(self, container_id: str) -> str:
        """Return the container's stdout and stderr, newline delimited."""
        ...

    def inspect_container(self, container_id: str) -> ContainerInfo:
        """Return structured container status."""
        ...

    def list_containers(self, labels: Mapping[str, str] | None = None) -> list[str]:
        """Return ids of containers (running or not) matching *labels*."""
        ...

    def create_network(self, name: str, subnet: str) -> str:
        """Create a network; return its id."""
        ...

    def remove_network(self, name: str) -> None:
        """Remove a network by name."""
        ...

    def copy_file_to_container(
        self, container_id: str, path: str, content: str
    ) -> None:
        """Materialize *content* at absolute *path* inside a container."""
        ...


def parse_inspect(payload: Any) -> ContainerInfo:
    """Validate one ``docker inspect`` entry (or a one-element list of them)."""
    if isinstance(payload, list):
        if len(payload) != 1:
            raise ValueError(f"expected one inspect entry, got {len(payload)}")
        payload = payload[0]
    return ContainerInfo.model_validate(payload)
