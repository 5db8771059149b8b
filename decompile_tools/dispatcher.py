"""Backend selection.

The stage chain is a pure function of the artifact kind and the backend
preferences. Stages run in order and each stage's output becomes the next
stage's input.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from config.manager import EnvironmentManager
from config.types import DecompilerPreferences
from decompile_tools.constants import ToolId
from decompile_tools.types import ArtifactKind, ProgressEvent


@dataclass(frozen=True)
class Stage:
    tool_id: str
    # Reported to the caller just before the stage starts
    announce: Optional[ProgressEvent] = None


UNPACKING = ProgressEvent(message="unpacking...", increment_percent=2)
DECOMPILING_CLASSES = ProgressEvent(
    message="decompiling classes... (this may take some time)", increment_percent=5
)


def chain_for(kind: ArtifactKind, preferences: DecompilerPreferences) -> Tuple[Stage, ...]:
    if kind == ArtifactKind.ANDROID_PACKAGE:
        if preferences.apk_prefers_jdcli:
            return (
                Stage(ToolId.DEX2JAR.value, announce=UNPACKING),
                Stage(ToolId.JDCLI.value, announce=DECOMPILING_CLASSES),
            )
        return (Stage(ToolId.JADX.value),)

    if kind == ArtifactKind.JAVA_CLASS_OR_JAR:
        if preferences.java_prefers_jdcli:
            return (Stage(ToolId.JDCLI.value),)
        return (Stage(ToolId.JADX.value),)

    # Anything else is assumed to be a native binary
    if preferences.prefers_ida:
        return (Stage(ToolId.IDA.value),)
    return (Stage(ToolId.GHIDRA.value),)


class PipelineDispatcher:
    """Maps an artifact kind to its stage chain using the current preferences."""

    def __init__(self, settings: EnvironmentManager):
        self.settings = settings

    def select(self, kind: ArtifactKind) -> Tuple[Stage, ...]:
        return chain_for(kind, self.settings.get_preferences())
