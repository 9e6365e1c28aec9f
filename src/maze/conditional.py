"""Single-shot conditional execution on a predicate.

``do_if`` evaluates its predicate exactly once and returns one of three
variants, each of which accepts the same ``or_else`` / ``on_error`` calls so
chains read the same whichever branch was taken:

    do_if(is_running, lambda: runtime.stop_container(cid)).or_else(
        lambda: logger.info("already stopped")
    ).on_error(lambda exc: logger.warning("inspect failed: %s", exc))
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from maze.result import Failure

if TYPE_CHECKING:
    from collections.abc import Callable

    from maze.predicate import Predicate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Consumed:
    """A branch has already run; further handlers are ignored."""

    def or_else(self, action: Callable[[], Any]) -> IfResult:  # noqa: ARG002
        return self

    def on_error(self, handler: Callable[[Exception], Any]) -> None:
        pass


@dataclass(frozen=True, slots=True)
class Else:
    """The predicate was false; ``or_else`` runs its action immediately."""

    def or_else(self, action: Callable[[], Any]) -> IfResult:
        action()
        return CONSUMED

    def on_error(self, handler: Callable[[Exception], Any]) -> None:
        pass


@dataclass(frozen=True, slots=True)
class ErrorCaptured:
    """The predicate could not be evaluated.

    The error reaches the caller only through ``on_error``; otherwise it is
    dropped.
    """

    error: Exception

    def or_else(self, action: Callable[[], Any]) -> IfResult:  # noqa: ARG002
        return self

    def on_error(self, handler: Callable[[Exception], Any]) -> None:
        handler(self.error)


type IfResult = Consumed | Else | ErrorCaptured

CONSUMED = Consumed()
ELSE = Else()


def do_if(predicate: Predicate, action: Callable[[], Any]) -> IfResult:
    """Run *action* if *predicate* is ``Success(True)``.

    Returns ``Consumed`` when the action ran, ``Else`` when the predicate was
    false, and ``ErrorCaptured`` when evaluating it failed.
    """
    outcome = predicate.evaluate()
    if isinstance(outcome.result, Failure):
        logger.debug("do_if(%r) captured %r", predicate.label, outcome.result.error)
        return ErrorCaptured(outcome.result.error)
    if outcome.is_true:
        action()
        return CONSUMED
    return ELSE
