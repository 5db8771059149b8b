"""Decompile Tools - drive external decompilers into a virtual filesystem."""

from decompile_tools.interfaces import ToolInterface, BackendInterface
from decompile_tools.plugin import register_backend, registry, BackendRegistry
from decompile_tools.errors import (
    DecompileError,
    ArtifactMissing,
    ToolNotFound,
    DangerousFilename,
    SpawnFailure,
    ToolFailed,
    OutputMissing,
    StagingIO,
    AnchorBusy,
    DecompileCancelled,
)
from decompile_tools.types import (
    Artifact,
    ArtifactKind,
    DecompileResult,
    ProgressEvent,
    ResultShape,
)
from decompile_tools.vfs import VirtualFileSystem, MemoryFileSystem
from decompile_tools.orchestrator import Orchestrator, CancellationToken
from decompile_tools.tool import DecompileTool

__version__ = "0.1.0"

__all__ = [
    # Interfaces
    "ToolInterface",
    "BackendInterface",
    # Backend registry
    "register_backend",
    "registry",
    "BackendRegistry",
    # Errors
    "DecompileError",
    "ArtifactMissing",
    "ToolNotFound",
    "DangerousFilename",
    "SpawnFailure",
    "ToolFailed",
    "OutputMissing",
    "StagingIO",
    "AnchorBusy",
    "DecompileCancelled",
    # Types
    "Artifact",
    "ArtifactKind",
    "DecompileResult",
    "ProgressEvent",
    "ResultShape",
    # Virtual filesystem
    "VirtualFileSystem",
    "MemoryFileSystem",
    # Entry points
    "Orchestrator",
    "CancellationToken",
    "DecompileTool",
]
