"""
Types used throughout the decompile_tools package.

Artifacts, progress events, command lines and results are pydantic
models so they validate on construction and serialize for the tool surface.
"""

import os
import shutil
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union, Literal
from pydantic import BaseModel, ConfigDict, Field


class ArtifactKind(str, Enum):
    NATIVE = "native"
    JAVA_CLASS_OR_JAR = "java"
    ANDROID_PACKAGE = "apk"

    def __str__(self) -> str:
        return self.value


# Extension -> kind; anything else is treated as a native binary
EXTENSION_KINDS = {
    ".apk": ArtifactKind.ANDROID_PACKAGE,
    ".class": ArtifactKind.JAVA_CLASS_OR_JAR,
    ".jar": ArtifactKind.JAVA_CLASS_OR_JAR,
}


class Artifact(BaseModel):
    """The input file of a decompile job."""

    path: str
    kind: ArtifactKind

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike]) -> "Artifact":
        path = os.fspath(path)
        kind = EXTENSION_KINDS.get(Path(path).suffix.lower(), ArtifactKind.NATIVE)
        return cls(path=path, kind=kind)

    @property
    def basename(self) -> str:
        return os.path.basename(self.path)


class ResultShape(str, Enum):
    SINGLE = "single"
    MULTI = "multi"

    def __str__(self) -> str:
        return self.value


class ProgressEvent(BaseModel):
    """A best-effort progress signal: a message and an increment toward 100%."""

    message: str
    increment_percent: float = 0.0


class FileOutput(BaseModel):
    """The tool writes exactly one file."""

    kind: Literal["file"] = "file"
    path: str

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def clear(self) -> None:
        """Remove what an earlier attempt may have left behind."""
        if os.path.lexists(self.path):
            os.remove(self.path)


class DirOutput(BaseModel):
    """The tool writes a directory tree.

    The output only counts as present once the tree holds at least one
    regular file; empty directories alone do not.
    """

    kind: Literal["dir"] = "dir"
    path: str

    def exists(self) -> bool:
        if not os.path.isdir(self.path):
            return False
        for dirpath, _, filenames in os.walk(self.path):
            if any(os.path.isfile(os.path.join(dirpath, name)) for name in filenames):
                return True
        return False

    def clear(self) -> None:
        """Empty the directory, keeping the directory itself."""
        if not os.path.isdir(self.path):
            return
        with os.scandir(self.path) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    shutil.rmtree(entry.path)
                else:
                    os.remove(entry.path)


ExpectedOutput = Union[FileOutput, DirOutput]


class BuildSpec(BaseModel):
    """A ready-to-run command line plus where its output will appear."""

    command: str
    args: List[str] = Field(default_factory=list)
    expected_output: ExpectedOutput = Field(discriminator="kind")
    use_shell: bool = False


class StageOutcome(BaseModel):
    """What one successful pipeline stage hands to the next one."""

    tool_id: str
    exit_code: int
    output: ExpectedOutput = Field(discriminator="kind")
    binary: str

    @property
    def output_path(self) -> str:
        return self.output.path


class DecompileResult(BaseModel):
    """Result of a completed decompile job."""

    exit_code: int
    payload: Optional[str] = None
    virtual_path: str
    shape: ResultShape
    source_language: str
    staged_files: List[str] = Field(default_factory=list)
