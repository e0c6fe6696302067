from __future__ import annotations

import os
from pathlib import Path

import anyio
import typer

from shipyard import __version__
from shipyard.cli.context import build_context
from shipyard.core.result import Err
from shipyard.engine.dagger_engine import engine_session
from shipyard.output.console import RichConsole, Style
from shipyard.output.errors import (
    pipeline_error_exit_code,
    print_pipeline_error,
    print_usage_error,
)
from shipyard.pipeline.context import TaskName, resolve
from shipyard.pipeline.dispatcher import PipelineDispatcher, run_task


app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
)


@app.command()
def run(
    task: str | None = typer.Argument(
        None, help="Task to run: pull-request or release", show_default=False
    ),
    local: bool = typer.Option(
        False, "--local", help="Snapshot release: export dist/ and push a ttl.sh image"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the stage plan without running"),
    config_path: Path | None = typer.Option(
        None, "--config", help="Path to shipyard.toml", show_default=False
    ),
    source: str | None = typer.Option(
        None, "--source", help="Host directory to snapshot (default: .)", show_default=False
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Run a CI task against the Dagger engine."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    resolved = resolve([task] if task else [], os.environ, local_mode=local)
    if isinstance(resolved, Err):
        print_usage_error(resolved.error, RichConsole())
        raise typer.Exit(code=pipeline_error_exit_code(resolved.error))
    task_name, exec_ctx = resolved.value

    ctx = build_context(config_path=config_path, source=source)
    if local and task_name != TaskName.release:
        ctx.console.warning("--local only applies to the release task; ignoring")

    dispatcher = PipelineDispatcher(ctx.config, ctx.console)

    if dry_run:
        ctx.console.header(f"Plan: {task_name}")
        for i, stage in enumerate(dispatcher.plan(task_name, exec_ctx), start=1):
            ctx.console.print(f"{i}. {stage}")
        ctx.console.print("dry-run: engine not contacted", Style.DIM)
        return

    result = anyio.run(run_task, dispatcher, task_name, exec_ctx, engine_session)
    if result.error is not None:
        print_pipeline_error(result.error, ctx.console)
        raise typer.Exit(code=pipeline_error_exit_code(result.error))

    ctx.console.success(result.message)


def main() -> None:
    app()
