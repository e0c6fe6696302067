"""Declarative container descriptions and the engine protocol.

Pipelines describe containers with ``ContainerSpec`` and hand them to an
engine. The engine is the only place that talks to the container runtime;
failures come back as ``EngineError`` values instead of exceptions.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

from ..core.result import Result

__all__ = [
    "HostDirectory",
    "ImageFile",
    "ExtractedFile",
    "FileSource",
    "Secret",
    "ContainerSpec",
    "Execution",
    "EngineError",
    "EngineProtocol",
]


@dataclass(frozen=True, slots=True)
class HostDirectory:
    """A snapshot of a host directory, optionally filtered."""

    path: str
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ImageFile:
    """A file taken from an image without running it."""

    image: str
    path: str


@dataclass(frozen=True, slots=True)
class ExtractedFile:
    """A file extracted from an executed container.

    ``handle`` is engine specific and opaque to pipelines.
    """

    path: str
    handle: object


type FileSource = ImageFile | ExtractedFile


class Secret:
    """A secret value that never shows up in repr/str output."""

    __slots__ = ("name", "_value")

    def __init__(self, name: str, value: str) -> None:
        self.name = name
        self._value = value

    def reveal(self) -> str:
        return self._value

    def __bool__(self) -> bool:
        return bool(self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        return self.name == other.name and self._value == other._value

    def __hash__(self) -> int:
        return hash((self.name, self._value))

    def __repr__(self) -> str:
        return f"Secret({self.name!r}, '***')"

    __str__ = __repr__


@dataclass(frozen=True, slots=True)
class ContainerSpec:
    """Everything needed to provision a container before running a command."""

    image: str
    workdir: str | None = None
    directories: tuple[tuple[str, HostDirectory], ...] = ()
    caches: tuple[tuple[str, str], ...] = ()
    files: tuple[tuple[str, FileSource], ...] = ()
    env: tuple[tuple[str, str], ...] = ()
    secrets: tuple[tuple[str, Secret], ...] = ()
    entrypoint: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class Execution:
    """A command that ran to completion inside a container."""

    command: tuple[str, ...]
    stdout: str
    handle: object


@dataclass(frozen=True, slots=True)
class EngineError:
    """Failure reported by the container engine.

    Attributes:
        kind: "exec" when the command ran and exited non-zero, "transport"
            when the engine could not run it at all.
        message: Engine-provided description.
        command: The command that was requested, if any.
        exit_code: Exit status for "exec" errors.
        stdout: Captured standard output (may be empty).
        stderr: Captured standard error of the failing command.
    """

    kind: Literal["exec", "transport"]
    message: str
    command: tuple[str, ...] = ()
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""

    def __str__(self) -> str:
        if self.kind == "exec" and self.command:
            cmd_str = " ".join(self.command[:3])
            if len(self.command) > 3:
                cmd_str += " ..."
            return f"{cmd_str} failed (exit {self.exit_code})"
        return self.message


class EngineProtocol(Protocol):
    """Operations the pipelines need from a container engine."""

    async def exec(
        self, spec: ContainerSpec, command: Sequence[str]
    ) -> Result[Execution, EngineError]:
        """Provision ``spec`` and run ``command`` in it, capturing stdout."""
        ...

    async def export_directory(
        self, execution: Execution, path: str, host_path: str
    ) -> Result[str, EngineError]:
        """Copy ``path`` from an executed container to the host."""
        ...

    async def extract_file(
        self, execution: Execution, path: str
    ) -> Result[ExtractedFile, EngineError]:
        """Resolve a file produced by an executed container."""
        ...

    async def publish(self, spec: ContainerSpec, address: str) -> Result[str, EngineError]:
        """Publish the container described by ``spec``; returns the image reference."""
        ...
