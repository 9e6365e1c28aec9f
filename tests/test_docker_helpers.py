"""Container helper tests against the in-memory runtime.

These drive the same helpers an integration test would call, end to end:
create with start retries, poll for running, run commands, read logs.
"""

from __future__ import annotations

import logging

import pytest

from maze.docker import (
    create_and_start_container,
    create_file_on_container,
    execution_on_container,
    exits_with,
    get_ip,
    is_running,
    logs,
    prepare_container,
    restart_container,
)
from maze.errors import ProcessExecutionError, RuntimeClientError, WaitTimeoutError
from maze.network import default_network
from maze.polling import expect_that, wait_until
from maze.result import Failure
from maze.runtime import ContainerRuntime, ProcessOutput
from maze.runtime.base import ContainerOptions, normalize_image, parse_inspect

pytestmark = pytest.mark.unit


def test_mock_runtime_satisfies_protocol(mock_runtime) -> None:
    assert isinstance(mock_runtime, ContainerRuntime)


# =============================================================================
# Options
# =============================================================================


@pytest.mark.parametrize(
    ("image", "expected"),
    [
        ("alpine", "alpine:latest"),
        ("alpine:3.20", "alpine:3.20"),
        ("registry:5000/team/app", "registry:5000/team/app:latest"),
        ("registry:5000/team/app:1.2", "registry:5000/team/app:1.2"),
        ("app@sha256:abc", "app@sha256:abc"),
    ],
)
def test_normalize_image(image: str, expected: str) -> None:
    assert normalize_image(image) == expected


def test_prepare_container_applies_network_and_labels(config) -> None:
    options = prepare_container("redis", config, name="cache", ports=("6379",))

    assert options.image == "redis:latest"
    assert options.network == "technical-tests"
    assert options.labels == {"test.runner": "maze"}
    assert options.name == "cache"
    assert options.cap_add == ("NET_ADMIN",)
    assert options.privileged is True


# =============================================================================
# Lifecycle
# =============================================================================


def test_wait_until_container_running(mock_runtime, config) -> None:
    cid = create_and_start_container(
        mock_runtime, prepare_container("alpine:3.20", config), config
    )

    remaining = wait_until(is_running(mock_runtime, cid), 5, poll_interval_s=0.0)

    assert 0 < remaining <= 5
    assert get_ip(mock_runtime, cid, config).startswith("10.20.0.")


def test_start_is_retried_until_container_accepts(mock_runtime, config) -> None:
    options = prepare_container("alpine:3.20", config, name="c1")
    mock_runtime.start_failures["c1"] = 2

    cid = create_and_start_container(mock_runtime, options, config)

    starts = [c for c in mock_runtime.calls if c[0] == "start_container"]
    assert cid == "c1"
    assert len(starts) == 3
    expect_that(is_running(mock_runtime, cid))


def test_start_gives_up_after_configured_attempts(mock_runtime, config) -> None:
    options = prepare_container("alpine:3.20", config, name="c1")
    mock_runtime.start_failures["c1"] = 10

    with pytest.raises(RuntimeClientError, match="not ready to start") as exc:
        create_and_start_container(mock_runtime, options, config)

    assert exc.value.operation == "start_container"
    assert mock_runtime.start_failures["c1"] == 10 - config.start_retries


def test_start_retries_are_logged_with_container_label(
    mock_runtime, config, caplog
) -> None:
    caplog.set_level(logging.WARNING, logger="maze.retry")
    mock_runtime.start_failures["c1"] = 1

    create_and_start_container(
        mock_runtime, prepare_container("alpine:3.20", config, name="c1"), config
    )

    assert [r.getMessage() for r in caplog.records] == [
        "Error [3 retry left] during start_container(c1)"
    ]


def test_missing_image_is_pulled_before_create(mock_runtime, config) -> None:
    create_and_start_container(mock_runtime, prepare_container("nginx", config), config)

    assert mock_runtime.pulls == ["nginx:latest"]
    calls = [c[0] for c in mock_runtime.calls]
    assert calls.index("pull_image") < calls.index("start_container")


def test_restart_stops_then_starts(mock_runtime, config) -> None:
    cid = create_and_start_container(
        mock_runtime, prepare_container("alpine:3.20", config), config
    )

    restart_container(mock_runtime, cid)

    assert [c[0] for c in mock_runtime.calls[-2:]] == [
        "stop_container",
        "start_container",
    ]
    expect_that(is_running(mock_runtime, cid))


def test_is_running_reports_status_in_message(mock_runtime) -> None:
    cid = mock_runtime.create_container(ContainerOptions(image="alpine:3.20"))

    outcome = is_running(mock_runtime, cid).evaluate()

    assert outcome.is_false
    assert outcome.message == f"container {cid} is created"


def test_wait_until_running_times_out_for_stopped_container(mock_runtime) -> None:
    cid = mock_runtime.create_container(ContainerOptions(image="alpine:3.20"))

    with pytest.raises(WaitTimeoutError, match=f"container {cid} is running"):
        wait_until(is_running(mock_runtime, cid), 0.05, poll_interval_s=0.01)


# =============================================================================
# Commands, logs, files
# =============================================================================


def test_failing_command_raises_process_execution_error(mock_runtime, config) -> None:
    cid = create_and_start_container(
        mock_runtime, prepare_container("alpine:3.20", config, name="c1"), config
    )
    mock_runtime.exec_results[("c1", "cat", "/missing")] = ProcessOutput(
        1, ["not found"]
    )
    run = execution_on_container(mock_runtime, cid, "cat", "/missing")

    outcome = run.run()

    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, ProcessExecutionError)
    assert outcome.error.exit_code == 1
    assert outcome.error.lines == ["not found"]
    assert str(outcome.error) == "not found"
    assert run.label == "Execution of cat /missing on container c1"


def test_successful_command_yields_lines(mock_runtime, config) -> None:
    cid = create_and_start_container(
        mock_runtime, prepare_container("alpine:3.20", config, name="c1"), config
    )
    mock_runtime.exec_results[("c1", "ls", "/etc")] = ProcessOutput(
        0, ["hosts", "passwd"]
    )

    expect_that(
        execution_on_container(mock_runtime, cid, "ls", "/etc").contains("hosts")
    )


def test_exits_with_matches_exit_code(mock_runtime, config) -> None:
    cid = create_and_start_container(
        mock_runtime, prepare_container("alpine:3.20", config, name="c1"), config
    )
    mock_runtime.exec_results[("c1", "false")] = ProcessOutput(1, [])

    assert exits_with(mock_runtime, cid, "true").evaluate().is_true
    assert exits_with(mock_runtime, cid, "false", code=1).evaluate().is_true
    assert exits_with(mock_runtime, cid, "false").evaluate().is_false


def test_exits_with_reports_runtime_errors(mock_runtime) -> None:
    outcome = exits_with(mock_runtime, "ghost", "true").evaluate()

    assert isinstance(outcome.result, Failure)
    assert "No such container: ghost" in outcome.message


def test_logs_are_split_into_lines(mock_runtime, config) -> None:
    cid = create_and_start_container(
        mock_runtime, prepare_container("alpine:3.20", config), config
    )
    mock_runtime.containers[cid].logs.extend(["booting", "ready"])

    wait_until(logs(mock_runtime, cid).contains("ready"), 5, poll_interval_s=0.0)
    assert logs(mock_runtime, cid).get() == ["booting", "ready"]


def test_create_file_on_container(mock_runtime, config) -> None:
    cid = create_and_start_container(
        mock_runtime, prepare_container("alpine:3.20", config), config
    )

    create_file_on_container(mock_runtime, cid, "/etc/app.conf", "port=8080\n")

    assert mock_runtime.containers[cid].files == {"/etc/app.conf": "port=8080\n"}


def test_get_ip_without_network_raises(mock_runtime, config) -> None:
    cid = mock_runtime.create_container(ContainerOptions(image="alpine:3.20"))
    mock_runtime.start_container(cid)

    with pytest.raises(RuntimeClientError) as exc:
        get_ip(mock_runtime, cid, config)

    assert exc.value.operation == "get_ip"
    assert exc.value.hint is not None


def test_list_containers_filters_by_label(mock_runtime, config) -> None:
    tagged = mock_runtime.create_container(prepare_container("alpine:3.20", config))
    mock_runtime.create_container(ContainerOptions(image="alpine:3.20"))

    assert mock_runtime.list_containers({"test.runner": "maze"}) == [tagged]


def test_parse_inspect_accepts_cli_list_shape() -> None:
    info = parse_inspect(
        [
            {
                "Id": "abc",
                "State": {"Status": "exited", "Running": False, "ExitCode": 3},
                "Config": {"Image": "ignored"},
            }
        ]
    )

    assert info.id == "abc"
    assert info.state.exit_code == 3
    assert info.ip_address("technical-tests") is None


def test_parse_inspect_rejects_multiple_entries() -> None:
    with pytest.raises(ValueError):
        parse_inspect([{"Id": "a"}, {"Id": "b"}])


# =============================================================================
# Network
# =============================================================================


def test_default_network_is_removed_after_block(mock_runtime, config) -> None:
    with default_network(mock_runtime, config) as network_id:
        assert network_id == "net-technical-tests"
        assert mock_runtime.networks == {"technical-tests": "10.20.0.0/24"}

    assert mock_runtime.networks == {}


def test_default_network_is_removed_when_block_fails(mock_runtime, config) -> None:
    with pytest.raises(RuntimeError), default_network(mock_runtime, config):
        raise RuntimeError("test failed")

    assert mock_runtime.networks == {}
