"""Interfaces for decompiler tools.

This module defines the interfaces that backends and tool surfaces must
implement to be driven by the orchestrator.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from decompile_tools.types import BuildSpec, ProgressEvent


class ToolInterface(ABC):
    """Base interface for callable tool surfaces."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description."""
        pass

    @property
    @abstractmethod
    def input_schema(self) -> Dict[str, Any]:
        """Get the JSON schema for the tool input."""
        pass

    @abstractmethod
    async def execute_tool(self, arguments: Dict[str, Any]) -> Any:
        """Execute the tool with the provided arguments.

        Args:
            arguments: Dictionary of arguments for the tool

        Returns:
            Tool execution result
        """
        pass


class BackendInterface(ABC):
    """One external decompiler or converter integration.

    Subclasses set ``tool_id`` and, for decompilers, ``source_language``.
    Converters leave ``source_language`` unset; their output feeds the next
    stage and is never staged into the virtual filesystem.
    """

    tool_id: str = ""
    source_language: Optional[str] = None
    # Extension of the virtual file for single-file output
    virtual_extension: str = ""

    def __init__(self, settings=None):
        self.settings = settings

    def setting(self, name: str, default: Any = None) -> Any:
        if self.settings is None:
            return default
        return self.settings.get_setting(name, default)

    @abstractmethod
    def build(self, tool_path: str, artifact_path: str, workspace_path: str) -> BuildSpec:
        """Build the command line for one invocation.

        Args:
            tool_path: Resolved binary of the tool (or of one of its variants)
            artifact_path: File to process
            workspace_path: Empty directory owned by this invocation

        Returns:
            Command, arguments and the expected output location
        """
        pass

    def parse_progress(self, stream: str, chunk: str) -> Optional[ProgressEvent]:
        """Turn one output line into a progress event, or None."""
        return None

    def check_artifact(self, artifact_path: str) -> None:
        """Reject artifacts this backend cannot safely process, before spawning."""
        return None

    def variants(self, tool_path: str) -> List[str]:
        """Binaries to try in order; only the first is used unless it fails."""
        return [tool_path]
