"""Container engine abstraction."""

from .model import (
    ContainerSpec,
    EngineError,
    EngineProtocol,
    Execution,
    ExtractedFile,
    FileSource,
    HostDirectory,
    ImageFile,
    Secret,
)

__all__ = [
    "ContainerSpec",
    "EngineError",
    "EngineProtocol",
    "Execution",
    "ExtractedFile",
    "FileSource",
    "HostDirectory",
    "ImageFile",
    "Secret",
]
