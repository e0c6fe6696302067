"""Error types for task resolution and pipeline execution.

Every failure is terminal: a pipeline stops at the first failing stage and
returns one of these. Engine failures are carried verbatim in ``error`` so
the external tool's stderr reaches the operator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..engine.model import EngineError

LocalReleaseStage = Literal["snapshot", "export", "extract"]


@dataclass(frozen=True, slots=True)
class MissingArgument:
    available: tuple[str, ...]

    @property
    def message(self) -> str:
        return "missing task name"


@dataclass(frozen=True, slots=True)
class UnknownTask:
    name: str
    available: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"unknown task: {self.name}"


@dataclass(frozen=True, slots=True)
class ConnectionFailure:
    error: EngineError
    hint: str = "Is a container runtime (docker/podman) running?"

    @property
    def message(self) -> str:
        return f"could not connect to the Dagger engine: {self.error.message}"


@dataclass(frozen=True, slots=True)
class MissingCredential:
    variable: str
    hint: str = "Export a token with permission to create releases"

    @property
    def message(self) -> str:
        return f"{self.variable} is not set"


@dataclass(frozen=True, slots=True)
class TestFailure:
    error: EngineError

    # Not a test class, despite the name.
    __test__ = False

    @property
    def message(self) -> str:
        return f"tests failed: {self.error}"


@dataclass(frozen=True, slots=True)
class BuildFailure:
    error: EngineError

    @property
    def message(self) -> str:
        return f"build failed: {self.error}"


@dataclass(frozen=True, slots=True)
class ReleaseFailure:
    error: EngineError

    @property
    def message(self) -> str:
        return f"release failed: {self.error}"


@dataclass(frozen=True, slots=True)
class LocalReleaseFailure:
    stage: LocalReleaseStage
    error: EngineError

    @property
    def message(self) -> str:
        return f"local release failed at {self.stage}: {self.error}"


@dataclass(frozen=True, slots=True)
class PublishFailure:
    address: str
    error: EngineError
    stage: Literal["publish"] = "publish"

    @property
    def message(self) -> str:
        return f"publish to {self.address} failed: {self.error}"


ResolveError = MissingArgument | UnknownTask

PipelineError = (
    ConnectionFailure
    | MissingCredential
    | TestFailure
    | BuildFailure
    | ReleaseFailure
    | LocalReleaseFailure
    | PublishFailure
)
