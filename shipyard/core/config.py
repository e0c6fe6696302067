"""Typed pipeline configuration.

All versions, image references and paths used by the pipelines live here and
are handed to the dispatcher at construction. An optional ``shipyard.toml``
overrides the defaults:

    [app]
    name = "dagger-go-example-app"
    version = "0.0.1"
    build_path = "dist/"

    [go]
    version = "1.20"
    cache_key = "gomod"

    [images]
    syft = "anchore/syft:latest"
    goreleaser = "goreleaser/goreleaser:latest"
    runtime = "alpine:latest"

    [release]
    registry = "ttl.sh"
    ttl = "5m"
    dist_path = "dist"
    export_path = "dist/"
    binary_path = "dist/dagger-go-example-app_linux_amd64_v1/dagger-go-example-app"

    [source]
    path = "."
    exclude = ["dist", "vendor", ".git", "ci", ".github"]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_tuple, get_table

__all__ = [
    "AppConfig",
    "GoConfig",
    "ImagesConfig",
    "ReleaseConfig",
    "SourceConfig",
    "PipelineConfig",
    "ConfigError",
    "CONFIG_FILENAME",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = "shipyard.toml"

# https://hub.docker.com/_/golang
DEFAULT_GO_VERSION = "1.20"
DEFAULT_APP_NAME = "dagger-go-example-app"
DEFAULT_APP_VERSION = "0.0.1"
DEFAULT_BUILD_PATH = "dist/"
DEFAULT_CACHE_KEY = "gomod"

DEFAULT_DIST_PATH = "dist"

DEFAULT_SOURCE_EXCLUDE = ("dist", "vendor", ".git", "ci", ".github")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application identity and build output location."""

    name: str = DEFAULT_APP_NAME
    version: str = DEFAULT_APP_VERSION
    build_path: str = DEFAULT_BUILD_PATH

    @property
    def binary_output(self) -> str:
        """Path of the compiled binary, relative to the source root."""
        return f"{self.build_path.rstrip('/')}/{self.name}"


@dataclass(frozen=True, slots=True)
class GoConfig:
    version: str = DEFAULT_GO_VERSION
    cache_key: str = DEFAULT_CACHE_KEY

    @property
    def image(self) -> str:
        return f"golang:{self.version}-alpine"


@dataclass(frozen=True, slots=True)
class ImagesConfig:
    syft: str = "anchore/syft:latest"
    goreleaser: str = "goreleaser/goreleaser:latest"
    runtime: str = "alpine:latest"


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Local (snapshot) release settings.

    ``dist_path`` is where GoReleaser writes its output, relative to the
    source root; it is independent of ``app.build_path``. ``binary_path``
    lives under it, one directory per target platform.
    """

    registry: str = "ttl.sh"
    ttl: str = "5m"
    dist_path: str = DEFAULT_DIST_PATH
    export_path: str = "dist/"
    binary_path: str = f"{DEFAULT_DIST_PATH}/{DEFAULT_APP_NAME}_linux_amd64_v1/{DEFAULT_APP_NAME}"


@dataclass(frozen=True, slots=True)
class SourceConfig:
    path: str = "."
    exclude: tuple[str, ...] = DEFAULT_SOURCE_EXCLUDE


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Main configuration container."""

    app: AppConfig = field(default_factory=AppConfig)
    go: GoConfig = field(default_factory=GoConfig)
    images: ImagesConfig = field(default_factory=ImagesConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    source: SourceConfig = field(default_factory=SourceConfig)

    def with_source_path(self, path: str) -> PipelineConfig:
        return replace(self, source=replace(self.source, path=path))

    def image_address(self) -> str:
        """Registry address for the short-lived local release image."""
        return f"{self.release.registry}/{self.app.name}-{self.app.version}:{self.release.ttl}"

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> PipelineConfig:
        """Create PipelineConfig from a mapping (parsed TOML)."""
        app: StrDict = get_table(data, "app") or {}
        go: StrDict = get_table(data, "go") or {}
        images: StrDict = get_table(data, "images") or {}
        release: StrDict = get_table(data, "release") or {}
        source: StrDict = get_table(data, "source") or {}

        app_name = get_str(app, "name") or DEFAULT_APP_NAME
        dist_path = (get_str(release, "dist_path") or DEFAULT_DIST_PATH).rstrip("/")
        exclude = get_str_tuple(source, "exclude")
        defaults = ReleaseConfig()
        image_defaults = ImagesConfig()

        return cls(
            app=AppConfig(
                name=app_name,
                version=get_str(app, "version") or DEFAULT_APP_VERSION,
                build_path=get_str(app, "build_path") or DEFAULT_BUILD_PATH,
            ),
            go=GoConfig(
                version=get_str(go, "version") or DEFAULT_GO_VERSION,
                cache_key=get_str(go, "cache_key") or DEFAULT_CACHE_KEY,
            ),
            images=ImagesConfig(
                syft=get_str(images, "syft") or image_defaults.syft,
                goreleaser=get_str(images, "goreleaser") or image_defaults.goreleaser,
                runtime=get_str(images, "runtime") or image_defaults.runtime,
            ),
            release=ReleaseConfig(
                registry=get_str(release, "registry") or defaults.registry,
                ttl=get_str(release, "ttl") or defaults.ttl,
                dist_path=dist_path,
                export_path=get_str(release, "export_path") or defaults.export_path,
                binary_path=get_str(release, "binary_path")
                or f"{dist_path}/{app_name}_linux_amd64_v1/{app_name}",
            ),
            source=SourceConfig(
                path=get_str(source, "path") or ".",
                exclude=DEFAULT_SOURCE_EXCLUDE if exclude is None else exclude,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[PipelineConfig, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to shipyard.toml

    Returns:
        Ok(PipelineConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(PipelineConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[PipelineConfig, ConfigError]:
    """Load config if the file exists, otherwise return the defaults.

    A file that exists but cannot be parsed is still an error.
    """
    if not path.exists():
        return Ok(PipelineConfig())
    return load_config(path)
