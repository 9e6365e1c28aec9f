"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off flaky-operation closures as coverage expands.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ScriptedOperation:
    """Callable that plays back a scripted sequence of values/exceptions.

    Once the script is exhausted, ``default`` is returned.
    """

    script: list[Any] = field(default_factory=list)
    default: Any = None
    calls: int = 0

    def __call__(self) -> Any:
        self.calls += 1
        if not self.script:
            return self.default
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def failing_then(k: int, value: Any, exc: type[Exception] = RuntimeError) -> ScriptedOperation:
    """Operation that raises *k* times, then returns *value* forever."""
    return ScriptedOperation(
        script=[exc(f"attempt {i + 1} failed") for i in range(k)], default=value
    )


@dataclass
class SleepRecorder:
    """Stand-in for ``time.sleep`` that records requested delays."""

    delays: list[float] = field(default_factory=list)

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
