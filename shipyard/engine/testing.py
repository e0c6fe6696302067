"""In-memory engine used by tests.

``RecordingEngine`` records every call and returns scripted failures.
``RecordingSession`` stands in for ``engine_session`` and counts how many
times the connection was opened and closed.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Literal

from ..core.result import Err, Ok, Result
from .model import ContainerSpec, EngineError, Execution, ExtractedFile

__all__ = ["EngineCall", "RecordingEngine", "RecordingSession", "exec_failure"]

Operation = Literal["exec", "export", "extract", "publish"]


@dataclass(frozen=True, slots=True)
class EngineCall:
    op: Operation
    args: tuple[str, ...]
    spec: ContainerSpec | None = None


def exec_failure(command: Sequence[str], *, stderr: str, exit_code: int = 1) -> EngineError:
    """Build the error an engine reports for a command exiting non-zero."""
    return EngineError(
        kind="exec",
        message=f"process exited with status {exit_code}",
        command=tuple(command),
        exit_code=exit_code,
        stderr=stderr,
    )


def _empty_calls() -> list[EngineCall]:
    return []


def _empty_exec_failures() -> dict[tuple[str, ...], EngineError]:
    return {}


def _empty_op_failures() -> dict[str, EngineError]:
    return {}


@dataclass
class RecordingEngine:
    """EngineProtocol implementation that never touches a container runtime.

    Attributes:
        calls: Every operation in call order.
        exec_failures: Commands that fail, keyed by the full command tuple.
        op_failures: "export", "extract" or "publish" operations that fail.
        stdout: Output returned by successful commands.
    """

    calls: list[EngineCall] = field(default_factory=_empty_calls)
    exec_failures: dict[tuple[str, ...], EngineError] = field(
        default_factory=_empty_exec_failures
    )
    op_failures: dict[str, EngineError] = field(default_factory=_empty_op_failures)
    stdout: str = ""

    async def exec(
        self, spec: ContainerSpec, command: Sequence[str]
    ) -> Result[Execution, EngineError]:
        cmd = tuple(command)
        self.calls.append(EngineCall("exec", cmd, spec))
        failure = self.exec_failures.get(cmd)
        if failure is not None:
            return Err(failure)
        return Ok(Execution(command=cmd, stdout=self.stdout, handle=spec))

    async def export_directory(
        self, execution: Execution, path: str, host_path: str
    ) -> Result[str, EngineError]:
        self.calls.append(EngineCall("export", (path, host_path)))
        failure = self.op_failures.get("export")
        if failure is not None:
            return Err(failure)
        return Ok(host_path)

    async def extract_file(
        self, execution: Execution, path: str
    ) -> Result[ExtractedFile, EngineError]:
        self.calls.append(EngineCall("extract", (path,)))
        failure = self.op_failures.get("extract")
        if failure is not None:
            return Err(failure)
        return Ok(ExtractedFile(path=path, handle=execution.handle))

    async def publish(self, spec: ContainerSpec, address: str) -> Result[str, EngineError]:
        self.calls.append(EngineCall("publish", (address,), spec))
        failure = self.op_failures.get("publish")
        if failure is not None:
            return Err(failure)
        return Ok(f"{address}@sha256:0000")

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [c.args for c in self.calls if c.op == "exec"]

    def ops(self, op: Operation) -> list[EngineCall]:
        return [c for c in self.calls if c.op == op]


@dataclass
class RecordingSession:
    """Callable replacement for ``engine_session``."""

    engine: RecordingEngine = field(default_factory=RecordingEngine)
    connect_error: EngineError | None = None
    opened: int = 0
    closed: int = 0

    @asynccontextmanager
    async def __call__(self) -> AsyncIterator[Result[RecordingEngine, EngineError]]:
        self.opened += 1
        try:
            if self.connect_error is not None:
                yield Err(self.connect_error)
            else:
                yield Ok(self.engine)
        finally:
            self.closed += 1
