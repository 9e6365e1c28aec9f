"""In-memory runtime for tests and dry runs."""

from __future__ import annotations

from dataclasses import dataclass, field
import itertools
from typing import TYPE_CHECKING

from maze.callbacks import LogAppender, pump
from maze.errors import RuntimeClientError
from maze.runtime.base import (
    ContainerInfo,
    ContainerOptions,
    ProcessOutput,
    normalize_image,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass
class MockContainer:
    """State the mock keeps per container."""

    id: str
    options: ContainerOptions
    status: str = "created"
    exit_code: int = 0
    ip_address: str = ""
    logs: list[str] = field(default_factory=list)
    files: dict[str, str] = field(default_factory=dict)


class MockRuntime:
    """Mock runtime for testing without a Docker daemon.

    Output is delivered through the same callback adapter the real runtime
    uses, so waiting on it behaves alike. Failures are scripted:

    - ``start_failures[id]``: how many ``start_container`` calls fail first
    - ``exec_results[(id, *argv)]``: the ``ProcessOutput`` an exec returns
    """

    def __init__(self, *, images: tuple[str, ...] = ()) -> None:
        self.images: set[str] = {normalize_image(i) for i in images}
        self.containers: dict[str, MockContainer] = {}
        self.networks: dict[str, str] = {}
        self.start_failures: dict[str, int] = {}
        self.exec_results: dict[tuple[str, ...], ProcessOutput] = {}
        self.calls: list[tuple[str, ...]] = []
        self.pulls: list[str] = []
        self._ids = itertools.count(1)

    def _get(self, container_id: str, operation: str) -> MockContainer:
        try:
            return self.containers[container_id]
        except KeyError:
            raise RuntimeClientError(
                f"No such container: {container_id}",
                operation=operation,
                exit_code=1,
            ) from None

    # --- images ---

    def image_exists(self, image: str) -> bool:
        return normalize_image(image) in self.images

    def pull_image(self, image: str) -> int:
        self.calls.append(("pull_image", image))
        self.pulls.append(normalize_image(image))
        self.images.add(normalize_image(image))
        return 1

    # --- containers ---

    def create_container(self, options: ContainerOptions) -> str:
        self.calls.append(("create_container", options.image))
        if not self.image_exists(options.image):
            self.pull_image(options.image)
        container_id = options.name or f"mock-{next(self._ids)}"
        self.containers[container_id] = MockContainer(container_id, options)
        return container_id

    def start_container(self, container_id: str) -> None:
        self.calls.append(("start_container", container_id))
        container = self._get(container_id, "start_container")
        remaining = self.start_failures.get(container_id, 0)
        if remaining > 0:
            self.start_failures[container_id] = remaining - 1
            raise RuntimeClientError(
                f"container {container_id} is not ready to start",
                operation="start_container",
                exit_code=1,
            )
        container.status = "running"
        if container.options.network and not container.ip_address:
            container.ip_address = f"10.20.0.{len(self.containers) + 1}"

    def stop_container(self, container_id: str) -> None:
        self.calls.append(("stop_container", container_id))
        self._get(container_id, "stop_container").status = "exited"

    def kill_container(self, container_id: str, signal: str = "KILL") -> None:
        self.calls.append(("kill_container", container_id, signal))
        container = self._get(container_id, "kill_container")
        container.status = "exited"
        container.exit_code = 137

    def remove_container(self, container_id: str, *, force: bool = True) -> None:
        self.calls.append(("remove_container", container_id))
        container = self._get(container_id, "remove_container")
        if container.status == "running" and not force:
            raise RuntimeClientError(
                f"container {container_id} is running",
                operation="remove_container",
                exit_code=1,
            )
        del self.containers[container_id]

    def exec_command(self, container_id: str, argv: list[str]) -> ProcessOutput:
        self.calls.append(("exec_command", container_id, *argv))
        self._get(container_id, "exec_command")
        scripted = self.exec_results.get(
            (container_id, *argv), ProcessOutput(exit_code=0, lines=[])
        )
        output = LogAppender()
        pump((f"{line}\n" for line in scripted.lines), output, name="mock-exec")
        return ProcessOutput(scripted.exit_code, output.await_completion().lines())

    def get_logs(self, container_id: str) -> str:
        container = self._get(container_id, "get_logs")
        output = LogAppender()
        pump((f"{line}\n" for line in container.logs), output, name="mock-logs")
        return output.await_completion().result

    def inspect_container(self, container_id: str) -> ContainerInfo:
        container = self._get(container_id, "inspect_container")
        networks = {}
        if container.options.network:
            networks[container.options.network] = {"IPAddress": container.ip_address}
        return ContainerInfo.model_validate(
            {
                "Id": container.id,
                "Name": f"/{container.id}",
                "State": {
                    "Status": container.status,
                    "Running": container.status == "running",
                    "ExitCode": container.exit_code,
                },
                "NetworkSettings": {"Networks": networks},
            }
        )

    def list_containers(self, labels: Mapping[str, str] | None = None) -> list[str]:
        wanted = dict(labels or {})
        return [
            c.id
            for c in self.containers.values()
            if all(c.options.labels.get(k) == v for k, v in wanted.items())
        ]

    # --- networks ---

    def create_network(self, name: str, subnet: str) -> str:
        self.calls.append(("create_network", name, subnet))
        if name in self.networks:
            raise RuntimeClientError(
                f"network with name {name} already exists",
                operation="create_network",
                exit_code=1,
            )
        self.networks[name] = subnet
        return f"net-{name}"

    def remove_network(self, name: str) -> None:
        self.calls.append(("remove_network", name))
        if self.networks.pop(name, None) is None:
            raise RuntimeClientError(
                f"network {name} not found", operation="remove_network", exit_code=1
            )

    # --- files ---

    def copy_file_to_container(
        self, container_id: str, path: str, content: str
    ) -> None:
        self.calls.append(("copy_file_to_container", container_id, path))
        self._get(container_id, "copy_file_to_container").files[path] = content
