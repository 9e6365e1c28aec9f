"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, and automatic Docker
test skipping. Fixtures in the first two sections are autouse.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import pytest

from maze.config import Config
from maze.runtime.mock import MockRuntime

pytest_plugins = ["pytester"]

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_runtime_env(request, monkeypatch):
    """Ensure a clean Docker environment for each test.

    Clears DOCKER_* and MAZE_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.docker
    """
    if request.node.get_closest_marker(
        "allow_env_pollution"
    ) or request.node.get_closest_marker("docker"):
        return

    for key in list(os.environ.keys()):
        if key.startswith(("DOCKER_", "MAZE_")):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_loggers():
    """Keep per-poll debug chatter out of captured output."""
    logging.getLogger("maze.polling").setLevel(logging.INFO)


# =============================================================================
# Pytest Hooks
# =============================================================================

DOCKER_TESTS_REASON = "Docker tests require ENABLE_DOCKER_TESTS=1"


def _docker_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_DOCKER_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip Docker tests when not explicitly enabled."""
    if _docker_tests_enabled():
        return
    skip_docker = pytest.mark.skip(reason=DOCKER_TESTS_REASON)
    for item in items:
        if item.get_closest_marker("docker"):
            item.add_marker(skip_docker)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def config() -> Config:
    """Config with no delay between start attempts."""
    return Config(retry_delay_s=0.0)


@pytest.fixture
def mock_runtime() -> MockRuntime:
    """In-memory runtime with a small image already present."""
    return MockRuntime(images=("alpine:3.20",))
