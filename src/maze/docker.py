"""Container helpers built on the runtime protocol and the polling core.

These are the operations integration tests actually call: create a container
and start it with retries, run a command as an ``Execution``, read logs, look
up an address on the test network.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from maze.errors import ProcessExecutionError, RuntimeClientError
from maze.execution import Execution
from maze.predicate import Predicate, PredicateResult
from maze.result import Failure, Success
from maze.retry import retry
from maze.runtime.base import ContainerOptions

if TYPE_CHECKING:
    from maze.config import Config
    from maze.runtime.base import ContainerRuntime

logger = logging.getLogger(__name__)


def prepare_container(image: str, config: Config, **extra: Any) -> ContainerOptions:
    """Return creation options for *image* on the configured test network.

    DNS settings and extra labels come from *config*; keyword arguments
    override any ``ContainerOptions`` field.
    """
    fields: dict[str, Any] = {
        "network": config.network_name,
        "dns": config.dns,
        "dns_search": config.dns_search,
        "labels": dict(config.extra_labels),
    }
    fields.update(extra)
    return ContainerOptions(image=image, **fields)


def create_and_start_container(
    runtime: ContainerRuntime, options: ContainerOptions, config: Config
) -> str:
    """Create a container and start it, retrying the start.

    A just-created container can refuse to start for a short while, so the
    start is attempted up to ``config.start_retries`` times.
    """
    container_id = runtime.create_container(options)
    retry(
        config.start_retries,
        f"start_container({container_id})",
        delay_s=config.retry_delay_s,
    )(lambda: runtime.start_container(container_id))
    return container_id


def restart_container(runtime: ContainerRuntime, container_id: str) -> None:
    runtime.stop_container(container_id)
    runtime.start_container(container_id)


def execution_on_container(
    runtime: ContainerRuntime, container_id: str, *command: str
) -> Execution[list[str]]:
    """Describe running *command* in a container.

    The execution yields the output lines; a non-zero exit code becomes a
    ``ProcessExecutionError`` carrying the code and the lines.
    """
    rendered = " ".join(command)

    def body() -> list[str]:
        output = runtime.exec_command(container_id, list(command))
        if output.exit_code != 0:
            logger.debug(
                "%s on %s had error: %s", rendered, container_id, "\n".join(output.lines)
            )
            raise ProcessExecutionError(
                output.exit_code,
                output.lines,
                command=command,
                container_id=container_id,
            )
        logger.debug(
            "result of %s on %s: [%s]", rendered, container_id, "\n".join(output.lines)
        )
        return output.lines

    return Execution(body, f"Execution of {rendered} on container {container_id}")


def logs(runtime: ContainerRuntime, container_id: str) -> Execution[list[str]]:
    """Describe reading a container's logs as lines."""

    def body() -> list[str]:
        lines = runtime.get_logs(container_id).splitlines()
        logger.debug("Got logs for container %s: %s", container_id, "\n".join(lines))
        return lines

    return Execution(body, f"logs of container {container_id}")


def create_file_on_container(
    runtime: ContainerRuntime, container_id: str, path: str, content: str
) -> None:
    runtime.copy_file_to_container(container_id, path, content)


def get_ip(runtime: ContainerRuntime, container_id: str, config: Config) -> str:
    """Return the container's address on the configured test network."""
    info = runtime.inspect_container(container_id)
    address = info.ip_address(config.network_name)
    if address is None:
        raise RuntimeClientError(
            f"container {container_id} has no address on {config.network_name}",
            operation="get_ip",
            hint="Was it created with prepare_container() on the test network?",
        )
    return address


def is_running(runtime: ContainerRuntime, container_id: str) -> Predicate:
    """Predicate over the container's inspected state."""
    label = f"container {container_id} is running"

    def check() -> PredicateResult:
        info = runtime.inspect_container(container_id)
        return PredicateResult(
            Success(info.is_running), f"container {container_id} is {info.state.status}"
        )

    return Predicate(check, label)


def exits_with(
    runtime: ContainerRuntime, container_id: str, *command: str, code: int = 0
) -> Predicate:
    """Predicate that *command* in the container exits with *code*."""
    run = execution_on_container(runtime, container_id, *command)

    def check() -> PredicateResult:
        match run.run():
            case Success(lines):
                return PredicateResult(Success(code == 0), f"exit code 0: {lines}")
            case Failure(ProcessExecutionError() as err):
                return PredicateResult(
                    Success(err.exit_code == code),
                    f"exit code {err.exit_code}: {err.lines}",
                )
            case Failure() as failure:
                return PredicateResult(failure, f"{failure.error}")

    return Predicate(check, f"{run.label} exits with {code}")
