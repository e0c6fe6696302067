"""Task dispatch.

``PipelineDispatcher`` selects the pipeline for a task and folds its Result
into a ``PipelineResult``. ``run_task`` wraps a run in an engine session so
the connection is released on every path.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from ..core.config import PipelineConfig
from ..core.result import Err, Ok, Result
from ..engine.model import EngineError, EngineProtocol
from ..output.console import ConsoleProtocol
from .context import EventKind, ExecutionContext, TaskName
from .errors import ConnectionFailure
from .model import PipelineResult
from .release import ReleasePipeline
from .verify import STAGES as VERIFY_STAGES
from .verify import VerificationPipeline

__all__ = ["PipelineDispatcher", "EngineSession", "run_task"]

type EngineSession = Callable[
    [], AbstractAsyncContextManager[Result[EngineProtocol, EngineError]]
]


class PipelineDispatcher:
    def __init__(self, config: PipelineConfig, console: ConsoleProtocol) -> None:
        self._config = config
        self._console = console
        self._verify = VerificationPipeline(config, console)
        self._release = ReleasePipeline(config, console)

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def plan(self, task: TaskName, ctx: ExecutionContext) -> tuple[str, ...]:
        """Stages ``run`` would execute for this task, in order."""
        match task:
            case TaskName.pull_request:
                return VERIFY_STAGES
            case TaskName.release:
                return self._release.stages(ctx)

    def describe_event(self, ctx: ExecutionContext) -> None:
        match ctx.event:
            case EventKind.push if ctx.is_release_tag:
                self._console.info(f"Release tag push detected ({ctx.ref})")
            case EventKind.push:
                self._console.info(f"Push event detected ({ctx.ref or 'no ref'})")
            case EventKind.pull_request:
                self._console.info("Pull request event detected")
            case EventKind.unknown:
                self._console.info("Unknown event detected")

    async def run(
        self, task: TaskName, ctx: ExecutionContext, engine: EngineProtocol
    ) -> PipelineResult:
        self.describe_event(ctx)
        stages = self.plan(task, ctx)

        match task:
            case TaskName.pull_request:
                self._console.header("Verification")
                result = await self._verify.run(engine)
            case TaskName.release:
                self._console.header("Local release" if ctx.local_mode else "Release")
                if not ctx.local_mode and not ctx.is_release_tag:
                    self._console.warning(
                        f"releasing from a non-tag context (event={ctx.event}, ref={ctx.ref or '-'})"
                    )
                result = await self._release.run(ctx, engine)

        match result:
            case Ok(message):
                return PipelineResult(task=task, message=message, stages=stages)
            case Err(error):
                return PipelineResult(task=task, message=error.message, error=error, stages=stages)


async def run_task(
    dispatcher: PipelineDispatcher,
    task: TaskName,
    ctx: ExecutionContext,
    session: EngineSession,
) -> PipelineResult:
    """Connect, run the task, and release the connection.

    Args:
        dispatcher: Configured dispatcher.
        task: Validated task name.
        ctx: Resolved CI context.
        session: Factory returning an async context manager that yields
            Ok(engine) or Err(EngineError) when the engine is unreachable.
    """
    async with session() as connected:
        if isinstance(connected, Err):
            failure = ConnectionFailure(error=connected.error)
            return PipelineResult(task=task, message=failure.message, error=failure)
        return await dispatcher.run(task, ctx, connected.value)
