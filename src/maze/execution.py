"""Labelled, re-runnable wrappers around side-effecting operations.

An ``Execution`` describes an operation without running it. Each ``run()``
evaluates the body afresh and normalizes the outcome into a ``Result``, which
is what lets the same value back a predicate polled many times.

Example:
    ```python
    status = Execution(lambda: runtime.inspect_container(cid).status, "status of c1")
    wait_until(status.is_equal_to("running"), 30)
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from maze.predicate import Predicate, PredicateResult
from maze.result import Failure, Result, Success, capture, unwrap

if TYPE_CHECKING:
    from collections.abc import Callable


class Execution[T]:
    """An immutable description of an operation, with a human-readable label."""

    __slots__ = ("_fn", "_label")

    def __init__(self, fn: Callable[[], T], label: str = "execution") -> None:
        self._fn = fn
        self._label = label

    @property
    def label(self) -> str:
        return self._label

    def labeled(self, label: str) -> Execution[T]:
        """Return a copy with the same body and a different label."""
        return Execution(self._fn, label)

    def run(self) -> Result[T]:
        """Evaluate the body; exceptions come back as ``Failure``."""
        return capture(self._fn)

    def get(self) -> T:
        """Evaluate the body and return its value, raising on failure."""
        return unwrap(self.run())

    def map[U](self, fn: Callable[[T], U], label: str | None = None) -> Execution[U]:
        """Derive an execution that transforms a successful value."""
        return Execution(lambda: fn(self._fn()), label or self._label)

    # --- predicate builders ---

    def to_predicate(self) -> Predicate:
        """Treat a boolean-valued execution as a predicate."""
        return self._compare(lambda value: bool(value), "is true")

    def is_equal_to(self, expected: Any) -> Predicate:
        return self._compare(lambda value: value == expected, f"== {expected!r}")

    def is_not_equal_to(self, expected: Any) -> Predicate:
        return self._compare(lambda value: value != expected, f"!= {expected!r}")

    def is_greater_than(self, bound: Any) -> Predicate:
        return self._compare(lambda value: value > bound, f"> {bound!r}")

    def is_less_than(self, bound: Any) -> Predicate:
        return self._compare(lambda value: value < bound, f"< {bound!r}")

    def contains(self, item: Any) -> Predicate:
        return self._compare(lambda value: item in value, f"contains {item!r}")

    def satisfies(self, check: Callable[[T], bool], description: str) -> Predicate:
        return self._compare(check, description)

    def succeeds(self) -> Predicate:
        """True when the body runs without raising."""

        def evaluate() -> PredicateResult:
            match self.run():
                case Success(value):
                    return PredicateResult(
                        Success(True), f"{self._label} returned {value!r}"
                    )
                case Failure(error):
                    return PredicateResult(
                        Success(False),
                        f"{self._label} failed with {type(error).__name__}: {error}",
                    )

        return Predicate(evaluate, f"{self._label} succeeds")

    def _compare(self, check: Callable[[T], bool], description: str) -> Predicate:
        label = f"{self._label} {description}"

        def evaluate() -> PredicateResult:
            match self.run():
                case Success(value):
                    outcome = capture(lambda: bool(check(value)))
                    if isinstance(outcome, Failure):
                        return PredicateResult(
                            outcome, f"cannot compare {value!r}: {outcome.error}"
                        )
                    return PredicateResult(outcome, f"got {value!r}")
                case Failure(error) as failure:
                    return PredicateResult(
                        failure, f"{type(error).__name__}: {error}"
                    )

        return Predicate(evaluate, label)

    def __repr__(self) -> str:
        return f"Execution({self._label!r})"


def execution[T](label: str) -> Callable[[Callable[[], T]], Execution[T]]:
    """Decorate a zero-argument function into a labelled ``Execution``."""

    def wrap(fn: Callable[[], T]) -> Execution[T]:
        return Execution(fn, label)

    return wrap
