from __future__ import annotations

import pytest

from shipyard.core.errors import ErrorCode
from shipyard.engine.model import EngineError
from shipyard.engine.testing import exec_failure
from shipyard.output.console import MockConsole, Style
from shipyard.output.errors import (
    USAGE,
    pipeline_error_exit_code,
    print_pipeline_error,
    print_usage_error,
)
from shipyard.pipeline.errors import (
    BuildFailure,
    ConnectionFailure,
    LocalReleaseFailure,
    MissingArgument,
    MissingCredential,
    PublishFailure,
    ReleaseFailure,
    TestFailure,
    UnknownTask,
)

EXEC = exec_failure(("go", "test", "./..."), stderr="--- FAIL: TestAdd\nFAIL\n")
TRANSPORT = EngineError(kind="transport", message="connection reset")
TASKS = ("pull-request", "release")


def test_usage_error_prints_usage() -> None:
    console = MockConsole()
    print_usage_error(UnknownTask(name="deploy", available=TASKS), console)
    assert USAGE in console.messages
    assert console.find("unknown task: deploy")
    assert console.find("pull-request, release")


def test_usage_error_line_is_plain_stdout_output() -> None:
    console = MockConsole()
    print_usage_error(MissingArgument(available=TASKS), console)
    first = console.outputs[0]
    assert first.message == "error: missing task name"
    assert first.style == Style.DEFAULT
    assert not console.has_error()
    assert not console.has_warning()


def test_stderr_is_printed_verbatim() -> None:
    console = MockConsole()
    print_pipeline_error(TestFailure(error=EXEC), console)
    assert "--- FAIL: TestAdd\nFAIL" in console.messages
    assert console.outputs[0].style == Style.ERROR


def test_stage_is_printed() -> None:
    console = MockConsole()
    print_pipeline_error(LocalReleaseFailure(stage="export", error=TRANSPORT), console)
    assert console.find("stage: export")
    assert console.find("connection reset")


def test_hint_is_printed() -> None:
    console = MockConsole()
    print_pipeline_error(MissingCredential(variable="GITHUB_TOKEN"), console)
    assert console.find("GITHUB_TOKEN is not set")
    assert console.find("hint:")


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (MissingArgument(available=TASKS), ErrorCode.USER_ERROR),
        (UnknownTask(name="x", available=TASKS), ErrorCode.USER_ERROR),
        (ConnectionFailure(error=TRANSPORT), ErrorCode.ENV_ERROR),
        (MissingCredential(variable="GITHUB_TOKEN"), ErrorCode.ENV_ERROR),
        (TestFailure(error=EXEC), ErrorCode.BUILD_ERROR),
        (BuildFailure(error=EXEC), ErrorCode.BUILD_ERROR),
        (ReleaseFailure(error=EXEC), ErrorCode.RELEASE_ERROR),
        (LocalReleaseFailure(stage="snapshot", error=EXEC), ErrorCode.RELEASE_ERROR),
        (LocalReleaseFailure(stage="export", error=TRANSPORT), ErrorCode.IO_ERROR),
        (PublishFailure(address="ttl.sh/a:5m", error=TRANSPORT), ErrorCode.NETWORK_ERROR),
    ],
)
def test_exit_codes(error: object, code: ErrorCode) -> None:
    assert pipeline_error_exit_code(error) == int(code)  # type: ignore[arg-type]
