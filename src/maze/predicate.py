"""Named boolean checks that describe themselves on failure."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from maze.result import Failure, Result, Success

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PredicateResult:
    """Outcome of one predicate evaluation.

    ``message`` explains the observed state and ends up in timeout and
    expectation failure reports.
    """

    result: Result[bool]
    message: str

    @property
    def is_true(self) -> bool:
        return self.result == Success(True)

    @property
    def is_false(self) -> bool:
        return self.result == Success(False)

    @property
    def error(self) -> Exception | None:
        if isinstance(self.result, Failure):
            return self.result.error
        return None


class Predicate:
    """A named, repeatedly evaluable boolean check.

    The check may return a ``PredicateResult`` (to control the message) or a
    plain ``bool``. Checks must be safe to call many times.

    Example:
        queue_empty = Predicate.of(lambda: not queue, "queue is empty")
        wait_until(queue_empty, 10)
    """

    __slots__ = ("_check", "_label")

    def __init__(
        self, check: Callable[[], PredicateResult | bool], label: str
    ) -> None:
        self._check = check
        self._label = label

    @classmethod
    def of(cls, fn: Callable[[], bool], label: str) -> Predicate:
        return cls(fn, label)

    @property
    def label(self) -> str:
        return self._label

    def labeled(self, label: str) -> Predicate:
        """Return the same check under another label."""
        return Predicate(self._check, label)

    def evaluate(self) -> PredicateResult:
        """Run the check once; exceptions are returned, never raised."""
        try:
            outcome = self._check()
        except Exception as exc:
            logger.debug("Predicate %r raised %r", self._label, exc)
            return PredicateResult(
                Failure(exc),
                f"{self._label} raised {type(exc).__name__}: {exc}",
            )
        if isinstance(outcome, PredicateResult):
            return outcome
        value = bool(outcome)
        return PredicateResult(Success(value), f"{self._label} is {value}")

    __call__ = evaluate

    def __and__(self, other: Predicate) -> Predicate:
        def check() -> PredicateResult:
            left = self.evaluate()
            if not left.is_true:
                return left
            right = other.evaluate()
            return PredicateResult(right.result, f"{left.message} and {right.message}")

        return Predicate(check, f"{self._label} and {other.label}")

    def __or__(self, other: Predicate) -> Predicate:
        def check() -> PredicateResult:
            left = self.evaluate()
            if left.is_true:
                return left
            right = other.evaluate()
            if right.is_true or isinstance(left.result, Success):
                return PredicateResult(
                    right.result, f"{left.message} or {right.message}"
                )
            return left

        return Predicate(check, f"{self._label} or {other.label}")

    def __invert__(self) -> Predicate:
        def check() -> PredicateResult:
            inner = self.evaluate()
            if isinstance(inner.result, Success):
                return PredicateResult(
                    Success(not inner.result.value), f"not ({inner.message})"
                )
            return inner

        return Predicate(check, f"not {self._label}")

    def __repr__(self) -> str:
        return f"Predicate({self._label!r})"


def always(value: bool, label: str | None = None) -> Predicate:
    """Return a predicate with a constant outcome."""
    return Predicate(lambda: value, label or f"always {value}")
