"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.errors import ErrorCode
from ..pipeline.errors import (
    BuildFailure,
    ConnectionFailure,
    LocalReleaseFailure,
    MissingArgument,
    MissingCredential,
    PipelineError,
    PublishFailure,
    ReleaseFailure,
    ResolveError,
    TestFailure,
    UnknownTask,
)
from .console import Style

if TYPE_CHECKING:
    from ..engine.model import EngineError
    from .console import ConsoleProtocol

__all__ = ["USAGE", "print_usage_error", "print_pipeline_error", "pipeline_error_exit_code"]

USAGE = "usage: shipyard [--local] [--dry-run] <pull-request|release>"


def print_usage_error(error: ResolveError, console: ConsoleProtocol) -> None:
    """Print a task resolution error followed by the usage line (stdout)."""
    console.print(f"error: {error.message}")
    console.print(USAGE)
    console.print(f"Available tasks: {', '.join(error.available)}", Style.DIM)


def _print_engine_output(error: EngineError, console: ConsoleProtocol) -> None:
    # Tool diagnostics are shown verbatim.
    if error.stderr:
        console.print(error.stderr.rstrip("\n"), Style.ERROR)
    elif error.kind == "transport" and error.message:
        console.print(error.message, Style.DIM)


def print_pipeline_error(error: PipelineError, console: ConsoleProtocol) -> None:
    """Print pipeline error to console with appropriate formatting."""
    console.error(error.message)
    match error:
        case ConnectionFailure(hint=hint) | MissingCredential(hint=hint):
            console.print(f"hint: {hint}", Style.DIM)
        case TestFailure(error=e) | BuildFailure(error=e) | ReleaseFailure(error=e):
            _print_engine_output(e, console)
        case LocalReleaseFailure(stage=stage, error=e) | PublishFailure(stage=stage, error=e):
            console.print(f"stage: {stage}", Style.DIM)
            _print_engine_output(e, console)


def pipeline_error_exit_code(error: PipelineError | ResolveError) -> int:
    """Get exit code for a pipeline or resolution error."""
    match error:
        case MissingArgument() | UnknownTask():
            return int(ErrorCode.USER_ERROR)
        case ConnectionFailure() | MissingCredential():
            return int(ErrorCode.ENV_ERROR)
        case TestFailure() | BuildFailure():
            return int(ErrorCode.BUILD_ERROR)
        case PublishFailure():
            return int(ErrorCode.NETWORK_ERROR)
        case LocalReleaseFailure(stage="export"):
            return int(ErrorCode.IO_ERROR)
        case ReleaseFailure() | LocalReleaseFailure():
            return int(ErrorCode.RELEASE_ERROR)
