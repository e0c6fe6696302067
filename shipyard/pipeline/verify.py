"""Verification pipeline: test and build inside a Go container."""

from __future__ import annotations

from ..core.config import PipelineConfig
from ..core.result import Err, Ok, Result
from ..engine.model import ContainerSpec, EngineProtocol, HostDirectory
from ..output.console import ConsoleProtocol, Style
from .errors import BuildFailure, TestFailure

SOURCE_MOUNT = "/src"
GO_MOD_CACHE = "/go/pkg/mod"

STAGES = ("source", "test", "build")


class VerificationPipeline:
    """Runs ``go test`` then ``go build``; exports nothing to the host."""

    def __init__(self, config: PipelineConfig, console: ConsoleProtocol) -> None:
        self._config = config
        self._console = console

    def source(self) -> HostDirectory:
        return HostDirectory(path=self._config.source.path, exclude=self._config.source.exclude)

    def container(self) -> ContainerSpec:
        go = self._config.go
        return ContainerSpec(
            image=go.image,
            workdir=SOURCE_MOUNT,
            directories=((SOURCE_MOUNT, self.source()),),
            caches=((GO_MOD_CACHE, go.cache_key),),
            env=(("CGO_ENABLED", "0"),),
        )

    def test_command(self) -> tuple[str, ...]:
        return ("go", "test", "./...")

    def build_command(self) -> tuple[str, ...]:
        return ("go", "build", "-o", self._config.app.binary_output, ".")

    async def run(self, engine: EngineProtocol) -> Result[str, TestFailure | BuildFailure]:
        spec = self.container()

        self._console.print(f"test: {' '.join(self.test_command())}", Style.DIM)
        tested = await engine.exec(spec, self.test_command())
        if isinstance(tested, Err):
            return Err(TestFailure(error=tested.error))
        self._console.success("Tests passed")

        self._console.print(f"build: {' '.join(self.build_command())}", Style.DIM)
        built = await engine.exec(spec, self.build_command())
        if isinstance(built, Err):
            return Err(BuildFailure(error=built.error))
        self._console.success(f"Built {self._config.app.binary_output}")

        return Ok("Verification passed: tests and build succeeded")
