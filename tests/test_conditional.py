"""do_if tests: one evaluation, three variants, uniform chaining."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from maze.conditional import CONSUMED, ELSE, Consumed, Else, ErrorCaptured, do_if
from maze.predicate import Predicate, always
from tests.helpers import ScriptedOperation

pytestmark = pytest.mark.unit


def test_true_runs_action_once_and_is_consumed() -> None:
    actions: list[str] = []

    result = do_if(always(True), lambda: actions.append("then"))

    assert result is CONSUMED
    assert actions == ["then"]


def test_false_skips_action_and_exposes_or_else() -> None:
    actions: list[str] = []

    result = do_if(always(False), lambda: actions.append("then"))
    assert result is ELSE
    assert actions == []

    after = result.or_else(lambda: actions.append("else"))
    assert actions == ["else"]
    assert isinstance(after, Consumed)


def test_or_else_is_ignored_once_consumed() -> None:
    actions: list[str] = []

    do_if(always(True), lambda: actions.append("then")).or_else(
        lambda: actions.append("else")
    )

    assert actions == ["then"]


def test_error_reaches_on_error_handler() -> None:
    boom = PermissionError("socket")
    seen: list[Exception] = []
    predicate = Predicate(ScriptedOperation(script=[boom]), "daemon reachable")

    result = do_if(predicate, lambda: pytest.fail("action must not run"))
    result.or_else(lambda: pytest.fail("else must not run")).on_error(seen.append)

    assert isinstance(result, ErrorCaptured)
    assert seen == [boom]
    assert seen[0] is boom


def test_error_is_absorbed_without_handler() -> None:
    predicate = Predicate(ScriptedOperation(script=[RuntimeError("x")]), "p")

    result = do_if(predicate, lambda: None)

    assert isinstance(result, ErrorCaptured)


def test_on_error_is_a_no_op_on_other_variants() -> None:
    seen: list[Exception] = []

    do_if(always(True), lambda: None).on_error(seen.append)
    do_if(always(False), lambda: None).on_error(seen.append)
    do_if(always(False), lambda: None).or_else(lambda: None).on_error(seen.append)

    assert seen == []


def test_predicate_is_evaluated_exactly_once() -> None:
    op = ScriptedOperation(default=False)

    do_if(Predicate(op, "p"), lambda: None).or_else(lambda: None).on_error(
        lambda _: None
    )

    assert op.calls == 1


def test_variants_support_structural_matching() -> None:
    err = ValueError("v")
    result = do_if(Predicate(ScriptedOperation(script=[err]), "p"), lambda: None)

    match result:
        case ErrorCaptured(error):
            captured = error
        case Consumed() | Else():
            captured = None

    assert captured is err


@given(outcome=st.sampled_from(["true", "false", "error"]), with_handler=st.booleans())
@settings(max_examples=20, deadline=None, derandomize=True)
def test_each_branch_runs_exactly_once(outcome: str, with_handler: bool) -> None:
    """Property: exactly one of action / else / handler runs, and only when due."""
    script = {"true": [True], "false": [False], "error": [OSError("e")]}[outcome]
    runs = {"then": 0, "else": 0, "error": 0}

    def bump(key: str) -> None:
        runs[key] += 1

    result = do_if(Predicate(ScriptedOperation(script=script), "p"), lambda: bump("then"))
    chained = result.or_else(lambda: bump("else"))
    if with_handler:
        chained.on_error(lambda _: bump("error"))

    expected = {"then": 0, "else": 0, "error": 0}
    if outcome == "true":
        expected["then"] = 1
    elif outcome == "false":
        expected["else"] = 1
    elif with_handler:
        expected["error"] = 1
    assert runs == expected
