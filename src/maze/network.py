"""Lifecycle of the shared network a test cluster runs on."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from maze.config import Config
    from maze.runtime.base import ContainerRuntime

logger = logging.getLogger(__name__)


def create_default_network(runtime: ContainerRuntime, config: Config) -> str:
    """Create the configured network; return its id."""
    logger.info(
        "Creating network %s (%s)", config.network_name, config.network_subnet
    )
    return runtime.create_network(config.network_name, config.network_subnet)


def remove_default_network(runtime: ContainerRuntime, config: Config) -> None:
    logger.info("Removing network %s", config.network_name)
    runtime.remove_network(config.network_name)


@contextmanager
def default_network(runtime: ContainerRuntime, config: Config) -> Iterator[str]:
    """Create the default network for the duration of the block."""
    network_id = create_default_network(runtime, config)
    try:
        yield network_id
    finally:
        remove_default_network(runtime, config)
