from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from shipyard.core.config import CONFIG_FILENAME, PipelineConfig, load_config, load_config_or_default
from shipyard.core.errors import ErrorCode
from shipyard.core.result import Err
from shipyard.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: PipelineConfig
    console: ConsoleProtocol


def build_context(*, config_path: Path | None = None, source: str | None = None) -> CLIContext:
    """Load configuration and create the console.

    An explicit ``--config`` must exist; the default ``shipyard.toml`` in the
    working directory is optional.
    """
    console = RichConsole()
    result = (
        load_config(config_path)
        if config_path is not None
        else load_config_or_default(Path.cwd() / CONFIG_FILENAME)
    )
    if isinstance(result, Err):
        console.error(result.error.message)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config = result.value
    if source is not None:
        config = config.with_source_path(source)
    return CLIContext(config=config, console=console)
