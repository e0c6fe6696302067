"""Release pipeline: GoReleaser with Syft for SBOM generation.

Two branches:
- full release: ``goreleaser release --clean``; publication is done by
  GoReleaser itself.
- local release: snapshot build, export of the build output to the host,
  and a short-lived runtime image pushed to the test registry.
"""

from __future__ import annotations

from ..core.config import PipelineConfig
from ..core.result import Err, Ok, Result
from ..engine.model import (
    ContainerSpec,
    EngineProtocol,
    Execution,
    ExtractedFile,
    HostDirectory,
    ImageFile,
    Secret,
)
from ..output.console import ConsoleProtocol, Style
from .context import TOKEN_VARIABLE, ExecutionContext
from .errors import (
    LocalReleaseFailure,
    MissingCredential,
    PublishFailure,
    ReleaseFailure,
)
from .verify import GO_MOD_CACHE, SOURCE_MOUNT

SYFT_IMAGE_PATH = "/syft"
SYFT_BIN = "/bin/syft"

FULL_STAGES = ("credential", "source", "sbom", "release")
LOCAL_STAGES = ("credential", "source", "sbom", "snapshot", "export", "extract", "publish")

type ReleaseError = MissingCredential | ReleaseFailure | LocalReleaseFailure | PublishFailure


class ReleasePipeline:
    def __init__(self, config: PipelineConfig, console: ConsoleProtocol) -> None:
        self._config = config
        self._console = console

    def stages(self, ctx: ExecutionContext) -> tuple[str, ...]:
        return LOCAL_STAGES if ctx.local_mode else FULL_STAGES

    def container(self, token: Secret) -> ContainerSpec:
        return ContainerSpec(
            image=self._config.images.goreleaser,
            workdir=SOURCE_MOUNT,
            files=((SYFT_BIN, ImageFile(self._config.images.syft, SYFT_IMAGE_PATH)),),
            directories=((SOURCE_MOUNT, HostDirectory(path=self._config.source.path)),),
            caches=((GO_MOD_CACHE, self._config.go.cache_key),),
            # goreleaser runs under tini; child processes must be reaped
            env=(("TINI_SUBREAPER", "true"),),
            secrets=((TOKEN_VARIABLE, token),),
        )

    def release_command(self, *, snapshot: bool) -> tuple[str, ...]:
        if snapshot:
            return ("goreleaser", "release", "--snapshot", "--clean")
        return ("goreleaser", "release", "--clean")

    def runtime_image(self, binary: ExtractedFile) -> ContainerSpec:
        target = f"/bin/{self._config.app.name}"
        return ContainerSpec(
            image=self._config.images.runtime,
            workdir="/bin",
            files=((target, binary),),
            entrypoint=(target,),
        )

    async def run(self, ctx: ExecutionContext, engine: EngineProtocol) -> Result[str, ReleaseError]:
        token = ctx.credential_token
        if not token:
            return Err(MissingCredential(variable=TOKEN_VARIABLE))

        spec = self.container(token)
        if ctx.local_mode:
            return await self._local(spec, engine)
        return await self._full(spec, engine)

    async def _full(
        self, spec: ContainerSpec, engine: EngineProtocol
    ) -> Result[str, ReleaseFailure]:
        command = self.release_command(snapshot=False)
        self._console.print(f"release: {' '.join(command)}", Style.DIM)
        released = await engine.exec(spec, command)
        if isinstance(released, Err):
            return Err(ReleaseFailure(error=released.error))
        if released.value.stdout:
            self._console.print(released.value.stdout)
        return Ok("Release completed successfully")

    async def _local(
        self, spec: ContainerSpec, engine: EngineProtocol
    ) -> Result[str, LocalReleaseFailure | PublishFailure]:
        command = self.release_command(snapshot=True)
        self._console.print(f"snapshot: {' '.join(command)}", Style.DIM)
        built = await engine.exec(spec, command)
        if isinstance(built, Err):
            return Err(LocalReleaseFailure(stage="snapshot", error=built.error))

        exported = await self._export(built.value, engine)
        if isinstance(exported, Err):
            return exported

        binary_path = f"{SOURCE_MOUNT}/{self._config.release.binary_path}"
        binary = await engine.extract_file(built.value, binary_path)
        if isinstance(binary, Err):
            return Err(LocalReleaseFailure(stage="extract", error=binary.error))

        address = self._config.image_address()
        published = await engine.publish(self.runtime_image(binary.value), address)
        if isinstance(published, Err):
            return Err(PublishFailure(address=address, error=published.error))
        self._console.success(f"Published {published.value}")

        return Ok(f"Local snapshot release published: {published.value}")

    async def _export(
        self, built: Execution, engine: EngineProtocol
    ) -> Result[str, LocalReleaseFailure]:
        host_path = self._config.release.export_path
        container_path = f"{SOURCE_MOUNT}/{self._config.release.dist_path}"
        exported = await engine.export_directory(built, container_path, host_path)
        if isinstance(exported, Err):
            return Err(LocalReleaseFailure(stage="export", error=exported.error))
        self._console.success(f"Exported build output to {exported.value}")
        return exported
