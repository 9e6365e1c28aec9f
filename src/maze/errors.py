"""Exception hierarchy for Maze."""

from __future__ import annotations

from typing import Any


class MazeError(Exception):
    """Base exception for all Maze errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(MazeError):
    """Configuration validation or resolution failed."""


class WaitTimeoutError(MazeError, TimeoutError):
    """A polled condition did not reach the expected state before its deadline.

    Also catchable as the builtin ``TimeoutError``.
    """

    def __init__(
        self,
        message: str,
        *,
        label: str,
        last_message: str,
        max_duration_s: float | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.label = label
        self.last_message = last_message
        self.max_duration_s = max_duration_s


class UnexpectedResultError(MazeError, AssertionError):
    """An expectation did not evaluate to ``Success(True)``.

    Carries either the mismatched ``value`` or the evaluation ``error``.
    """

    def __init__(
        self,
        message: str,
        *,
        label: str,
        value: Any = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.label = label
        self.value = value
        self.error = error


class ProcessExecutionError(MazeError):
    """A command executed inside a container exited with a non-zero code.

    The exit code and captured output travel as structured fields so callers
    can assert on them without parsing the message.
    """

    def __init__(
        self,
        exit_code: int,
        lines: list[str],
        *,
        command: tuple[str, ...] = (),
        container_id: str | None = None,
    ) -> None:
        super().__init__("\n".join(lines))
        self.exit_code = exit_code
        self.lines = list(lines)
        self.command = tuple(command)
        self.container_id = container_id

    def __repr__(self) -> str:
        return (
            f"ProcessExecutionError(exit_code={self.exit_code!r}, "
            f"lines={self.lines!r})"
        )


class RuntimeClientError(MazeError):
    """The container runtime client failed to perform an operation."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        exit_code: int | None = None,
        stderr: str = "",
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.operation = operation
        self.exit_code = exit_code
        self.stderr = stderr
