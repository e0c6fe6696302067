"""Dagger-backed engine.

Translates ``ContainerSpec`` values into Dagger SDK calls. SDK exceptions are
caught here and nowhere else; callers only ever see ``EngineError`` values.

Usage:
    async with engine_session() as connected:
        match connected:
            case Ok(engine):
                result = await engine.exec(spec, ["go", "test", "./..."])
            case Err(error):
                print(f"engine unreachable: {error.message}")
"""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator, Sequence
from contextlib import AsyncExitStack, asynccontextmanager
from typing import IO, cast

import dagger
from dagger import DaggerError, ExecError

from ..core.result import Err, Ok, Result
from .model import (
    ContainerSpec,
    EngineError,
    Execution,
    ExtractedFile,
    FileSource,
    HostDirectory,
    ImageFile,
)

__all__ = ["DaggerEngine", "engine_session"]


def _exec_error(e: ExecError, command: Sequence[str]) -> EngineError:
    return EngineError(
        kind="exec",
        message=str(e),
        command=tuple(command),
        exit_code=e.exit_code,
        stdout=e.stdout or "",
        stderr=e.stderr or "",
    )


def _transport_error(e: DaggerError, command: Sequence[str] = ()) -> EngineError:
    return EngineError(kind="transport", message=str(e), command=tuple(command))


class DaggerEngine:
    """EngineProtocol implementation on top of a connected ``dagger.Client``."""

    def __init__(self, client: dagger.Client) -> None:
        self._client = client

    def _directory(self, host: HostDirectory) -> dagger.Directory:
        if host.exclude:
            return self._client.host().directory(host.path, exclude=list(host.exclude))
        return self._client.host().directory(host.path)

    def _file(self, source: FileSource) -> dagger.File:
        match source:
            case ImageFile(image=image, path=path):
                return self._client.container().from_(image).file(path)
            case ExtractedFile(handle=handle):
                return cast(dagger.File, handle)

    def _container(self, spec: ContainerSpec) -> dagger.Container:
        ctr = self._client.container().from_(spec.image)
        for path, source in spec.files:
            ctr = ctr.with_file(path, self._file(source))
        for path, host in spec.directories:
            ctr = ctr.with_mounted_directory(path, self._directory(host))
        for path, key in spec.caches:
            ctr = ctr.with_mounted_cache(path, self._client.cache_volume(key))
        if spec.workdir:
            ctr = ctr.with_workdir(spec.workdir)
        for name, value in spec.env:
            ctr = ctr.with_env_variable(name, value)
        for name, secret in spec.secrets:
            ctr = ctr.with_secret_variable(
                name, self._client.set_secret(secret.name, secret.reveal())
            )
        if spec.entrypoint is not None:
            ctr = ctr.with_entrypoint(list(spec.entrypoint))
        return ctr

    async def exec(
        self, spec: ContainerSpec, command: Sequence[str]
    ) -> Result[Execution, EngineError]:
        ctr = self._container(spec).with_exec(list(command))
        try:
            stdout = await ctr.stdout()
        except ExecError as e:
            return Err(_exec_error(e, command))
        except DaggerError as e:
            return Err(_transport_error(e, command))
        return Ok(Execution(command=tuple(command), stdout=stdout, handle=ctr))

    async def export_directory(
        self, execution: Execution, path: str, host_path: str
    ) -> Result[str, EngineError]:
        ctr = cast(dagger.Container, execution.handle)
        try:
            await ctr.directory(path).export(host_path)
        except DaggerError as e:
            return Err(_transport_error(e))
        return Ok(host_path)

    async def extract_file(
        self, execution: Execution, path: str
    ) -> Result[ExtractedFile, EngineError]:
        ctr = cast(dagger.Container, execution.handle)
        file = ctr.file(path)
        try:
            # Files are lazy; force resolution so a missing path fails here.
            await file.size()
        except DaggerError as e:
            return Err(_transport_error(e))
        return Ok(ExtractedFile(path=path, handle=file))

    async def publish(self, spec: ContainerSpec, address: str) -> Result[str, EngineError]:
        try:
            ref = await self._container(spec).publish(address)
        except DaggerError as e:
            return Err(_transport_error(e))
        return Ok(ref)


@asynccontextmanager
async def engine_session(
    log_output: IO[str] | None = None,
) -> AsyncIterator[Result[DaggerEngine, EngineError]]:
    """Connect to the Dagger engine for the duration of the block.

    Yields Err when the engine cannot be provisioned. The connection is
    closed when the block exits, whatever the outcome.
    """
    async with AsyncExitStack() as stack:
        try:
            client = await stack.enter_async_context(
                dagger.Connection(dagger.Config(log_output=log_output or sys.stderr))
            )
        except DaggerError as e:
            yield Err(_transport_error(e))
            return
        yield Ok(DaggerEngine(client))
