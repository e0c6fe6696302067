"""Task resolution and pipeline execution."""

from .context import EventKind, ExecutionContext, TaskName, resolve
from .dispatcher import PipelineDispatcher, run_task
from .model import PipelineResult

__all__ = [
    "EventKind",
    "ExecutionContext",
    "TaskName",
    "resolve",
    "PipelineDispatcher",
    "run_task",
    "PipelineResult",
]
