"""Failures a decompile job can end with.

Every failure reaches the caller exactly once, as one of these exceptions.
"""

from typing import Any, Dict, List, Optional


class DecompileError(Exception):
    """Base class for all decompile failures."""

    kind = "DecompileError"
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        tool_id: Optional[str] = None,
        exit_code: Optional[int] = None,
        diagnostic: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.tool_id = tool_id
        self.exit_code = exit_code
        self.diagnostic = diagnostic

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": False,
            "kind": self.kind,
            "error": self.message,
        }
        if self.tool_id is not None:
            result["tool_id"] = self.tool_id
        if self.exit_code is not None:
            result["exit_code"] = self.exit_code
        if self.diagnostic:
            result["diagnostic"] = self.diagnostic
        return result


class ArtifactMissing(DecompileError):
    kind = "ArtifactMissing"


class ToolNotFound(DecompileError):
    """No usable binary could be resolved for a tool.

    ``hint`` tells the user what to install and which setting to edit;
    ``install_command`` is an argv the host may offer to run.
    """

    kind = "ToolNotFound"

    def __init__(
        self,
        message: str,
        *,
        tool_id: Optional[str] = None,
        hint: str = "",
        install_command: Optional[List[str]] = None,
    ):
        super().__init__(message, tool_id=tool_id)
        self.hint = hint
        self.install_command = install_command

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["hint"] = self.hint
        if self.install_command:
            result["install_command"] = list(self.install_command)
        return result


class DangerousFilename(DecompileError):
    kind = "DangerousFilename"


class SpawnFailure(DecompileError):
    """The OS could not start the tool. Fallback may switch variants."""

    kind = "SpawnFailure"
    retryable = True


class ToolFailed(DecompileError):
    """The tool exited non-zero. Fallback may switch variants."""

    kind = "ToolFailed"
    retryable = True


class OutputMissing(DecompileError):
    """The tool exited 0 but did not produce its output."""

    kind = "OutputMissing"


class StagingIO(DecompileError):
    kind = "StagingIO"


class AnchorBusy(DecompileError):
    """Another running job is staging under the same virtual anchor."""

    kind = "AnchorBusy"


class DecompileCancelled(DecompileError):
    kind = "DecompileCancelled"
