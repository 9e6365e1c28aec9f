"""Bounded, attempt-counted retries with a fixed delay.

Design goals:
- No predicate and no deadline: only the number of attempts bounds the loop
- The last failure propagates unchanged, intermediate ones are logged
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import functools
import logging
import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY_S = 0.25


@dataclass(frozen=True)
class RetryPlan:
    """Remaining attempts for one labelled operation."""

    attempts_remaining: int
    label: str

    def __post_init__(self) -> None:
        """Reject plans that could never run the operation."""
        if self.attempts_remaining < 1:
            raise ValueError("RetryPlan.attempts_remaining must be >= 1")

    @property
    def is_last(self) -> bool:
        return self.attempts_remaining <= 1

    def next(self) -> RetryPlan:
        """Return the plan for the following attempt."""
        return replace(self, attempts_remaining=self.attempts_remaining - 1)


def run_with_retries[T](
    plan: RetryPlan,
    operation: Callable[[], T],
    *,
    delay_s: float = DEFAULT_RETRY_DELAY_S,
) -> T:
    """Run *operation* until it succeeds or *plan* runs out of attempts."""
    while True:
        try:
            return operation()
        except Exception:
            if plan.is_last:
                logger.exception(
                    "Error [0 retry left] during %s, propagate exception", plan.label
                )
                raise
            plan = plan.next()
            logger.warning(
                "Error [%d retry left] during %s",
                plan.attempts_remaining,
                plan.label,
                exc_info=True,
            )
            if delay_s > 0:
                time.sleep(delay_s)


def retry[T](
    max_attempts: int,
    label: str,
    *,
    delay_s: float = DEFAULT_RETRY_DELAY_S,
) -> Callable[[Callable[[], T]], T]:
    """Return a runner that retries a zero-argument operation.

    Example:
        retry(4, f"start_container({cid})")(lambda: runtime.start_container(cid))
    """
    plan = RetryPlan(max_attempts, label)

    def runner(operation: Callable[[], T]) -> T:
        return run_with_retries(plan, operation, delay_s=delay_s)

    return runner


def retrying(
    max_attempts: int,
    label: str | None = None,
    *,
    delay_s: float = DEFAULT_RETRY_DELAY_S,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate a function so every call is retried up to *max_attempts* times."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    def decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        plan = RetryPlan(max_attempts, label or fn.__qualname__)

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return run_with_retries(
                plan, lambda: fn(*args, **kwargs), delay_s=delay_s
            )

        return wrapper

    return decorate
