"""Maze: polling assertions and retries for eventually-consistent tests.

Public API:
    - wait_until() / wait_while() / repeat_while(): deadline-bound polling
    - expect_that(): one-shot assertion on a Predicate
    - do_if(): single-shot conditional on a Predicate
    - retry() / retrying(): bounded retries with a fixed delay
    - Execution / Predicate: labelled, self-describing checks
    - Config: configuration dataclass
"""

from __future__ import annotations

import logging

from maze.callbacks import CompletionCallback, LogAppender, ResultCallback, pump
from maze.conditional import Consumed, Else, ErrorCaptured, IfResult, do_if
from maze.config import Config
from maze.deadline import Deadline
from maze.errors import (
    ConfigurationError,
    MazeError,
    ProcessExecutionError,
    RuntimeClientError,
    UnexpectedResultError,
    WaitTimeoutError,
)
from maze.execution import Execution, execution
from maze.polling import (
    expect_that,
    repeat_while,
    run,
    run_all,
    wait_for,
    wait_until,
    wait_while,
)
from maze.predicate import Predicate, PredicateResult, always
from maze.result import Failure, Result, Success, capture
from maze.retry import RetryPlan, retry, retrying

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("maze-dsl")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("maze").addHandler(logging.NullHandler())

# Re-export for convenience
__all__ = [
    "CompletionCallback",
    "Config",
    "ConfigurationError",
    "Consumed",
    "Deadline",
    "Else",
    "ErrorCaptured",
    "Execution",
    "Failure",
    "IfResult",
    "LogAppender",
    "MazeError",
    "Predicate",
    "PredicateResult",
    "ProcessExecutionError",
    "Result",
    "ResultCallback",
    "RetryPlan",
    "RuntimeClientError",
    "Success",
    "UnexpectedResultError",
    "WaitTimeoutError",
    "always",
    "capture",
    "do_if",
    "execution",
    "expect_that",
    "pump",
    "repeat_while",
    "retry",
    "retrying",
    "run",
    "run_all",
    "wait_for",
    "wait_until",
    "wait_while",
]
