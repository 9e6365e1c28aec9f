"""Result type for operations that can fail.

Every operation the engine evaluates (executions, predicates) reports its
outcome as a value rather than raising, so polling loops and conditional
branches can decide what a failure means.
"""

from __future__ import annotations

import dataclasses
import typing

if typing.TYPE_CHECKING:
    from collections.abc import Callable


@dataclasses.dataclass(frozen=True, slots=True)
class Success[T]:
    """A successful outcome carrying its value."""

    value: T


@dataclasses.dataclass(frozen=True, slots=True)
class Failure:
    """A failed outcome carrying the exception that caused it."""

    error: Exception


type Result[T] = Success[T] | Failure


def capture[T](fn: Callable[[], T]) -> Result[T]:
    """Run *fn* and return its outcome as a Result.

    Only ``Exception`` subclasses are captured; interpreter-level signals such
    as ``KeyboardInterrupt`` still propagate.
    """
    try:
        return Success(fn())
    except Exception as exc:
        return Failure(exc)


def unwrap[T](result: Result[T]) -> T:
    """Return the value of a Success or raise the error of a Failure."""
    if isinstance(result, Failure):
        raise result.error
    return result.value
