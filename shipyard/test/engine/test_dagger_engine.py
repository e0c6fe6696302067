"""Tests for the Dagger adapter, using a fake client instead of an engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import TracebackType

import anyio
import pytest

import shipyard.engine.dagger_engine as dagger_engine
from shipyard.core.result import Err, Ok
from shipyard.engine.dagger_engine import DaggerEngine, engine_session
from shipyard.engine.model import (
    ContainerSpec,
    Execution,
    ExtractedFile,
    HostDirectory,
    ImageFile,
    Secret,
)


class FakeDaggerError(Exception):
    pass


class FakeExecError(FakeDaggerError):
    def __init__(self, *, stderr: str, exit_code: int) -> None:
        super().__init__(f"process exited with {exit_code}")
        self.stderr = stderr
        self.stdout = ""
        self.exit_code = exit_code


@pytest.fixture(autouse=True)
def _fake_exceptions(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(dagger_engine, "DaggerError", FakeDaggerError)
    monkeypatch.setattr(dagger_engine, "ExecError", FakeExecError)


def _calls() -> list[tuple[object, ...]]:
    return []


@dataclass
class FakeFile:
    path: str
    fail: Exception | None = None

    async def size(self) -> int:
        if self.fail is not None:
            raise self.fail
        return 1


@dataclass
class FakeDirectory:
    path: str
    log: list[tuple[object, ...]]
    fail: Exception | None = None

    async def export(self, host_path: str) -> str:
        if self.fail is not None:
            raise self.fail
        self.log.append(("export", self.path, host_path))
        return host_path


@dataclass
class FakeContainer:
    log: list[tuple[object, ...]] = field(default_factory=_calls)
    fail: Exception | None = None

    def _record(self, *entry: object) -> FakeContainer:
        self.log.append(entry)
        return self

    def from_(self, image: str) -> FakeContainer:
        return self._record("from", image)

    def with_file(self, path: str, file: object) -> FakeContainer:
        return self._record("file", path, file)

    def with_mounted_directory(self, path: str, directory: object) -> FakeContainer:
        return self._record("directory", path, directory)

    def with_mounted_cache(self, path: str, cache: object) -> FakeContainer:
        return self._record("cache", path, cache)

    def with_workdir(self, path: str) -> FakeContainer:
        return self._record("workdir", path)

    def with_env_variable(self, name: str, value: str) -> FakeContainer:
        return self._record("env", name, value)

    def with_secret_variable(self, name: str, secret: object) -> FakeContainer:
        return self._record("secret", name, secret)

    def with_entrypoint(self, args: list[str]) -> FakeContainer:
        return self._record("entrypoint", tuple(args))

    def with_exec(self, args: list[str]) -> FakeContainer:
        return self._record("exec", tuple(args))

    def file(self, path: str) -> FakeFile:
        return FakeFile(path, fail=self.fail)

    def directory(self, path: str) -> FakeDirectory:
        return FakeDirectory(path, self.log, fail=self.fail)

    async def stdout(self) -> str:
        if self.fail is not None:
            raise self.fail
        return "ok\n"

    async def publish(self, address: str) -> str:
        if self.fail is not None:
            raise self.fail
        self.log.append(("publish", address))
        return f"{address}@sha256:abc"


class FakeHost:
    def directory(self, path: str, exclude: list[str] | None = None) -> tuple[object, ...]:
        return ("host", path, tuple(exclude or ()))


@dataclass
class FakeClient:
    ctr: FakeContainer = field(default_factory=FakeContainer)

    def container(self) -> FakeContainer:
        return self.ctr

    def host(self) -> FakeHost:
        return FakeHost()

    def cache_volume(self, key: str) -> tuple[str, str]:
        return ("volume", key)

    def set_secret(self, name: str, value: str) -> tuple[str, str]:
        return ("secret-ref", name)


def _engine(fail: Exception | None = None) -> tuple[DaggerEngine, FakeContainer]:
    client = FakeClient(FakeContainer(fail=fail))
    return DaggerEngine(client), client.ctr  # type: ignore[arg-type]


def test_exec_translates_spec_into_sdk_calls() -> None:
    engine, ctr = _engine()
    spec = ContainerSpec(
        image="golang:1.20-alpine",
        workdir="/src",
        directories=(("/src", HostDirectory(".", exclude=("dist", ".git"))),),
        caches=(("/go/pkg/mod", "gomod"),),
        env=(("CGO_ENABLED", "0"),),
        secrets=(("GITHUB_TOKEN", Secret("GITHUB_TOKEN", "ghp_x")),),
    )

    result = anyio.run(engine.exec, spec, ["go", "test", "./..."])

    assert isinstance(result, Ok)
    assert result.value.stdout == "ok\n"
    assert result.value.command == ("go", "test", "./...")
    assert ctr.log == [
        ("from", "golang:1.20-alpine"),
        ("directory", "/src", ("host", ".", ("dist", ".git"))),
        ("cache", "/go/pkg/mod", ("volume", "gomod")),
        ("workdir", "/src"),
        ("env", "CGO_ENABLED", "0"),
        ("secret", "GITHUB_TOKEN", ("secret-ref", "GITHUB_TOKEN")),
        ("exec", ("go", "test", "./...")),
    ]


def test_exec_image_file_is_taken_from_image() -> None:
    engine, ctr = _engine()
    spec = ContainerSpec(
        image="goreleaser/goreleaser:latest",
        files=(("/bin/syft", ImageFile("anchore/syft:latest", "/syft")),),
    )

    anyio.run(engine.exec, spec, ["goreleaser", "--version"])

    assert ("from", "anchore/syft:latest") in ctr.log
    file_entries = [e for e in ctr.log if e[0] == "file"]
    assert len(file_entries) == 1
    assert file_entries[0][1] == "/bin/syft"


def test_exec_error_keeps_stderr() -> None:
    engine, _ = _engine(fail=FakeExecError(stderr="--- FAIL: TestX", exit_code=1))

    result = anyio.run(engine.exec, ContainerSpec(image="golang"), ["go", "test"])

    assert isinstance(result, Err)
    assert result.error.kind == "exec"
    assert result.error.exit_code == 1
    assert result.error.stderr == "--- FAIL: TestX"


def test_transport_error() -> None:
    engine, _ = _engine(fail=FakeDaggerError("session closed"))

    result = anyio.run(engine.exec, ContainerSpec(image="golang"), ["go", "test"])

    assert isinstance(result, Err)
    assert result.error.kind == "transport"
    assert result.error.message == "session closed"


def test_export_directory() -> None:
    engine, ctr = _engine()
    execution = Execution(command=("x",), stdout="", handle=ctr)

    result = anyio.run(engine.export_directory, execution, "/src/dist", "dist/")

    assert result == Ok("dist/")
    assert ("export", "/src/dist", "dist/") in ctr.log


def test_export_failure() -> None:
    engine, ctr = _engine(fail=FakeDaggerError("disk full"))
    execution = Execution(command=("x",), stdout="", handle=ctr)

    result = anyio.run(engine.export_directory, execution, "/src/dist", "dist/")

    assert isinstance(result, Err)
    assert result.error.message == "disk full"


def test_extract_file_missing() -> None:
    engine, ctr = _engine(fail=FakeDaggerError("no such file"))
    execution = Execution(command=("x",), stdout="", handle=ctr)

    result = anyio.run(engine.extract_file, execution, "/src/dist/app")

    assert isinstance(result, Err)


def test_publish_wraps_extracted_binary() -> None:
    engine, ctr = _engine()
    binary = ExtractedFile(path="/src/dist/app", handle=FakeFile("/src/dist/app"))
    spec = ContainerSpec(
        image="alpine:latest",
        workdir="/bin",
        files=(("/bin/app", binary),),
        entrypoint=("/bin/app",),
    )

    result = anyio.run(engine.publish, spec, "ttl.sh/app-0.0.1:5m")

    assert result == Ok("ttl.sh/app-0.0.1:5m@sha256:abc")
    assert ("file", "/bin/app", binary.handle) in ctr.log
    assert ("entrypoint", ("/bin/app",)) in ctr.log
    assert ctr.log[-1] == ("publish", "ttl.sh/app-0.0.1:5m")


class FakeConnection:
    instances: list[FakeConnection] = []

    def __init__(self, config: object, *, fail: bool = False) -> None:
        self.config = config
        self.fail = fail
        self.exits = 0
        FakeConnection.instances.append(self)

    async def __aenter__(self) -> FakeClient:
        if self.fail:
            raise FakeDaggerError("failed to start engine")
        return FakeClient()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.exits += 1


def _use_connection(monkeypatch: pytest.MonkeyPatch, *, fail: bool) -> None:
    FakeConnection.instances = []

    def factory(config: object) -> FakeConnection:
        return FakeConnection(config, fail=fail)

    monkeypatch.setattr(dagger_engine.dagger, "Connection", factory)


def test_engine_session_yields_engine_and_closes(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_connection(monkeypatch, fail=False)

    async def use() -> object:
        async with engine_session() as connected:
            return connected

    connected = anyio.run(use)

    assert isinstance(connected, Ok)
    assert isinstance(connected.value, DaggerEngine)
    assert [c.exits for c in FakeConnection.instances] == [1]


def test_engine_session_reports_connection_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_connection(monkeypatch, fail=True)

    async def use() -> object:
        async with engine_session() as connected:
            return connected

    connected = anyio.run(use)

    assert isinstance(connected, Err)
    assert "failed to start engine" in connected.error.message


def test_engine_session_closes_when_body_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_connection(monkeypatch, fail=False)

    async def use() -> None:
        async with engine_session():
            raise RuntimeError("pipeline crashed")

    with pytest.raises(RuntimeError, match="pipeline crashed"):
        anyio.run(use)

    assert [c.exits for c in FakeConnection.instances] == [1]
