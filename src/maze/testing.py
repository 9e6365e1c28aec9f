"""pytest plugin providing a configured runtime and the test network.

Enabled automatically through the ``pytest11`` entry point. The fixtures are
session scoped: the network is created once before the first test that asks
for it and removed after the last.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from maze.config import Config
from maze.network import default_network
from maze.runtime.docker import DockerRuntime

if TYPE_CHECKING:
    from collections.abc import Iterator

    from maze.runtime.base import ContainerRuntime


@pytest.fixture(scope="session")
def maze_config() -> Config:
    """Configuration resolved from the environment."""
    return Config.from_env()


@pytest.fixture(scope="session")
def maze_runtime(maze_config: Config) -> ContainerRuntime:
    """Docker runtime for the session; override to substitute another runtime."""
    return DockerRuntime(maze_config)


@pytest.fixture(scope="session")
def maze_network(maze_runtime: ContainerRuntime, maze_config: Config) -> Iterator[str]:
    """Create the default test network for the session; yield its id."""
    with default_network(maze_runtime, maze_config) as network_id:
        yield network_id
