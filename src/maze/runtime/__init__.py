"""Container runtime implementations."""

from __future__ import annotations

from maze.runtime.base import (
    ContainerInfo,
    ContainerOptions,
    ContainerRuntime,
    ProcessOutput,
    normalize_image,
)
from maze.runtime.docker import DockerRuntime
from maze.runtime.mock import MockRuntime

__all__ = [
    "ContainerInfo",
    "ContainerOptions",
    "ContainerRuntime",
    "DockerRuntime",
    "MockRuntime",
    "ProcessOutput",
    "normalize_image",
]
