"""Deadline-bound polling loops and one-shot expectations.

``wait_until``, ``wait_while`` and ``repeat_while`` are the same loop: evaluate
a predicate, and while a continuation test over its result holds, either sleep
or run a caller action, until the deadline lapses. Only the continuation test
differs between "until" and "while".
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from maze.deadline import Deadline
from maze.errors import UnexpectedResultError, WaitTimeoutError
from maze.result import Failure, Success

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from maze.execution import Execution
    from maze.predicate import Predicate, PredicateResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_DURATION_S = 300.0
DEFAULT_POLL_INTERVAL_S = 0.02


def wait_for(seconds: float) -> None:
    """Block the calling thread for *seconds*."""
    time.sleep(seconds)


def _is_not_true(result: PredicateResult) -> bool:
    return result.result != Success(True)


def _is_true(result: PredicateResult) -> bool:
    return result.result == Success(True)


def _repeat(
    predicate: Predicate,
    keep_going: Callable[[PredicateResult], bool],
    max_duration_s: float,
    action: Callable[[], Any],
) -> float:
    deadline = Deadline.after(max_duration_s)
    result = predicate.evaluate()
    while keep_going(result):
        if isinstance(result.result, Failure):
            logger.debug(
                "Evaluation of %r failed, treating as unmet: %s",
                predicate.label,
                result.message,
            )
        if deadline.is_overdue():
            logger.info(
                "Condition %r timed out after %ss: %s",
                predicate.label,
                max_duration_s,
                result.message,
            )
            raise WaitTimeoutError(
                f"Condition '{predicate.label}' didn't occur within "
                f"{max_duration_s}s: {result.message}.",
                label=predicate.label,
                last_message=result.message,
                max_duration_s=max_duration_s,
            )
        action()
        result = predicate.evaluate()
    return deadline.time_left_s()


def wait_until(
    predicate: Predicate,
    max_duration_s: float = DEFAULT_MAX_DURATION_S,
    *,
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
) -> float:
    """Block until *predicate* evaluates to ``Success(True)``.

    Evaluation failures count as "not yet". Returns the seconds left of the
    budget; raises ``WaitTimeoutError`` when the deadline lapses first.
    """
    return _repeat(
        predicate, _is_not_true, max_duration_s, lambda: wait_for(poll_interval_s)
    )


def wait_while(
    predicate: Predicate,
    max_duration_s: float = DEFAULT_MAX_DURATION_S,
    *,
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
) -> float:
    """Block while *predicate* evaluates to ``Success(True)``.

    Stops as soon as the result is false or an evaluation error. Returns the
    seconds left of the budget.
    """
    return _repeat(
        predicate, _is_true, max_duration_s, lambda: wait_for(poll_interval_s)
    )


def repeat_while(
    predicate: Predicate,
    action: Callable[[], Any],
    max_duration_s: float = DEFAULT_MAX_DURATION_S,
) -> float:
    """Run *action* once per iteration while *predicate* holds.

    Like ``wait_while`` with the sleep replaced by the caller's action, so the
    action itself paces the loop.
    """
    return _repeat(predicate, _is_true, max_duration_s, action)


def expect_that(predicate: Predicate) -> None:
    """Evaluate *predicate* once and raise unless it is ``Success(True)``."""
    outcome = predicate.evaluate()
    if _is_true(outcome):
        return
    match outcome.result:
        case Success(value):
            raise UnexpectedResultError(
                f"Wrong expectation: {predicate.label}: {outcome.message}",
                label=predicate.label,
                value=value,
            )
        case Failure(error):
            raise UnexpectedResultError(
                f"Wrong expectation: {predicate.label}: {outcome.message}",
                label=predicate.label,
                error=error,
            ) from error


def run[T](execution: Execution[T]) -> T:
    """Run *execution* and return its value, raising the captured error."""
    return execution.get()


def run_all(executions: Iterable[Execution[Any]]) -> None:
    """Run each execution in order, stopping at the first failure."""
    for item in executions:
        run(item)
