"""Pipeline outcome shared between the dispatcher and the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from .context import TaskName
from .errors import PipelineError


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Outcome of one run, rendered by the CLI."""

    task: TaskName
    message: str
    error: PipelineError | None = None
    stages: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None
