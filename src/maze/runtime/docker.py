"""Docker runtime backed by the ``docker`` command line client.

Short operations run to completion with ``subprocess.run``. Streaming ones
(logs, exec output, image pulls, waiting for exit) are read from a
``subprocess.Popen`` pipe on a pump thread and delivered through the
callbacks in :mod:`maze.callbacks`, then awaited by polling.
"""

from __future__ import annotations

import io
import json
import logging
import os
import posixpath
import subprocess
import tarfile
from typing import TYPE_CHECKING, Any

from maze.callbacks import CompletionCallback, LogAppender, pump
from maze.errors import RuntimeClientError
from maze.runtime.base import (
    ContainerInfo,
    ContainerOptions,
    ProcessOutput,
    parse_inspect,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from maze.callbacks import ResultCallback
    from maze.config import Config

logger = logging.getLogger(__name__)

#: Exit code the docker client uses for its own failures.
DOCKER_CLIENT_ERROR = 125


class DockerRuntime:
    """``ContainerRuntime`` implementation driving the Docker CLI."""

    def __init__(self, config: Config) -> None:
        self.config = config

    # --- process plumbing ---

    def _command(self, *args: str) -> list[str]:
        cmd = [self.config.docker_binary, "--host", self.config.docker_host]
        if self.config.tls_verify and not self.config.docker_host.startswith("unix"):
            cmd.append("--tlsverify")
        cmd.extend(args)
        return cmd

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self.config.api_version:
            env["DOCKER_API_VERSION"] = self.config.api_version
        return env

    def _run(
        self,
        *args: str,
        operation: str,
        stdin: bytes | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[bytes]:
        cmd = self._command(*args)
        logger.debug("docker cmd %s", " ".join(cmd))
        try:
            proc = subprocess.run(  # noqa: S603
                cmd,
                input=stdin,
                capture_output=True,
                timeout=self.config.command_timeout_s,
                env=self._env(),
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise RuntimeClientError(
                f"{operation} timed out after {self.config.command_timeout_s}s",
                operation=operation,
                hint="Raise Config.command_timeout_s for slow daemons.",
            ) from exc
        except OSError as exc:
            raise self._missing_binary(operation, exc) from exc
        if check and proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise RuntimeClientError(
                f"{operation} failed with exit code {proc.returncode}: {stderr}",
                operation=operation,
                exit_code=proc.returncode,
                stderr=stderr,
            )
        return proc

    def _missing_binary(self, operation: str, exc: OSError) -> RuntimeClientError:
        return RuntimeClientError(
            f"{operation} could not run {self.config.docker_binary!r}: {exc}",
            operation=operation,
            hint="Install the Docker CLI or set MAZE_DOCKER_BINARY.",
        )

    def _stream(
        self, *args: str, callback: ResultCallback[Any], name: str, operation: str
    ) -> subprocess.Popen[bytes]:
        cmd = self._command(*args)
        logger.debug("docker stream %s", " ".join(cmd))
        try:
            proc = subprocess.Popen(  # noqa: S603
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=self._env(),
            )
        except OSError as exc:
            raise self._missing_binary(operation, exc) from exc
        stdout = proc.stdout
        if stdout is None:
            raise RuntimeClientError(
                f"{operation} has no output pipe", operation=operation
            )

        def reap() -> None:
            proc.wait()
            stdout.close()

        pump(
            iter(stdout.readline, b""),
            callback,
            name=name,
            closeable=stdout,
            on_finish=reap,
        )
        return proc

    @staticmethod
    def _check_stream(
        proc: subprocess.Popen[bytes], output: LogAppender, operation: str
    ) -> None:
        """Raise unless the awaited stream ended cleanly with exit code 0."""
        if output.error is None and proc.returncode == 0:
            return
        text = output.result.strip()
        raise RuntimeClientError(
            f"{operation} failed with exit code {proc.returncode}: {text}",
            operation=operation,
            exit_code=proc.returncode,
            stderr=text,
        )

    @staticmethod
    def _text(proc: subprocess.CompletedProcess[bytes]) -> str:
        return proc.stdout.decode("utf-8", errors="replace").strip()

    # --- images ---

    def image_exists(self, image: str) -> bool:
        proc = self._run("image", "inspect", image, operation="image_exists", check=False)
        return proc.returncode == 0

    def pull_image(self, image: str) -> int:
        progress: CompletionCallback[bytes] = CompletionCallback()
        proc = self._stream(
            "pull",
            image,
            callback=progress,
            name=f"pull-{image}",
            operation="pull_image",
        )
        events = progress.await_completion()
        if progress.error is not None or proc.returncode != 0:
            raise RuntimeClientError(
                f"pull of {image} failed",
                operation="pull_image",
                exit_code=proc.returncode,
                stderr=b"".join(events).decode("utf-8", errors="replace"),
            )
        return len(events)

    # --- containers ---

    def create_container(self, options: ContainerOptions) -> str:
        if not self.image_exists(options.image):
            logger.info("Pulling image %s...", options.image)
            self.pull_image(options.image)

        args: list[str] = ["create"]
        for cap in options.cap_add:
            args += ["--cap-add", cap]
        if options.privileged:
            args.append("--privileged")
        if options.network:
            args += ["--network", options.network]
        for server in options.dns:
            args += ["--dns", server]
        for domain in options.dns_search:
            args += ["--dns-search", domain]
        for key, value in options.labels.items():
            args += ["--label", f"{key}={value}"]
        for key, value in options.env.items():
            args += ["--env", f"{key}={value}"]
        for port in options.ports:
            args += ["--publish", port]
        if options.name:
            args += ["--name", options.name]
        args.append(options.image)
        args.extend(options.command)
        return self._text(self._run(*args, operation="create_container"))

    def start_container(self, container_id: str) -> None:
        self._run("start", container_id, operation="start_container")

    def stop_container(self, container_id: str) -> None:
        self._run("stop", container_id, operation="stop_container")
        exited = LogAppender()
        proc = self._stream(
            "wait",
            container_id,
            callback=exited,
            name=f"wait-{container_id}",
            operation="stop_container",
        )
        exited.await_completion()
        self._check_stream(proc, exited, "stop_container")

    def kill_container(self, container_id: str, signal: str = "KILL") -> None:
        self._run("kill", "--signal", signal, container_id, operation="kill_container")

    def remove_container(self, container_id: str, *, force: bool = True) -> None:
        args = ["rm", "--volumes"]
        if force:
            args.append("--force")
        self._run(*args, container_id, operation="remove_container")

    def exec_command(self, container_id: str, argv: list[str]) -> ProcessOutput:
        """Run *argv* in the container.

        The command's own exit code is returned. Exit code 125 is the docker
        client's (no such container, daemon unreachable) and raises.
        """
        output = LogAppender()
        proc = self._stream(
            "exec",
            container_id,
            *argv,
            callback=output,
            name=f"exec-{container_id}",
            operation="exec_command",
        )
        output.await_completion()
        if output.error is not None or proc.returncode in (None, DOCKER_CLIENT_ERROR):
            self._check_stream(proc, output, "exec_command")
        return ProcessOutput(exit_code=proc.returncode, lines=output.lines())

    def get_logs(self, container_id: str) -> str:
        output = LogAppender()
        proc = self._stream(
            "logs",
            container_id,
            callback=output,
            name=f"logs-{container_id}",
            operation="get_logs",
        )
        output.await_completion()
        self._check_stream(proc, output, "get_logs")
        return output.result

    def inspect_container(self, container_id: str) -> ContainerInfo:
        proc = self._run("inspect", container_id, operation="inspect_container")
        try:
            return parse_inspect(json.loads(proc.stdout))
        except ValueError as exc:
            raise RuntimeClientError(
                f"unreadable inspect output for {container_id}: {exc}",
                operation="inspect_container",
            ) from exc

    def list_containers(self, labels: Mapping[str, str] | None = None) -> list[str]:
        args = ["ps", "--all", "--quiet", "--no-trunc"]
        for key, value in (labels or {}).items():
            args += ["--filter", f"label={key}={value}"]
        return self._text(self._run(*args, operation="list_containers")).split()

    # --- networks ---

    def create_network(self, name: str, subnet: str) -> str:
        proc = self._run(
            "network", "create", "--subnet", subnet, name, operation="create_network"
        )
        return self._text(proc)

    def remove_network(self, name: str) -> None:
        self._run("network", "rm", name, operation="remove_network")

    # --- files ---

    def copy_file_to_container(
        self, container_id: str, path: str, content: str
    ) -> None:
        if not posixpath.isabs(path) or path.endswith("/"):
            raise ValueError(f"expected an absolute file path, got {path!r}")
        directory, file_name = posixpath.split(path)
        data = content.encode("utf-8")

        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w") as archive:
            entry = tarfile.TarInfo(file_name)
            entry.size = len(data)
            archive.addfile(entry, io.BytesIO(data))

        self._run(
            "cp",
            "-",
            f"{container_id}:{directory or '/'}",
            operation="copy_file_to_container",
            stdin=buffer.getvalue(),
        )
