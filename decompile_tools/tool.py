import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from decompile_tools.errors import DecompileError
from decompile_tools.interfaces import ToolInterface
from decompile_tools.orchestrator import Orchestrator
from decompile_tools.types import ProgressEvent

# Type alias for progress callback
ProgressCallback = Callable[[float, Optional[float], Optional[str]], Awaitable[None]]

logger = logging.getLogger(__name__)


class DecompileTool(ToolInterface):
    """Tool surface over the orchestrator that answers with plain dictionaries.

    Example:
        tool = DecompileTool()
        result = await tool.execute_tool({"artifact_path": "/tmp/app.apk"})
        if result["success"]:
            print(result["virtual_path"])
    """

    def __init__(self, orchestrator: Optional[Orchestrator] = None):
        self.orchestrator = orchestrator or Orchestrator()

    @property
    def name(self) -> str:
        """Get the tool name."""
        return "decompile"

    @property
    def description(self) -> str:
        """Get the tool description."""
        return (
            "Decompile a native binary, Java class/jar or Android package with "
            "Ghidra, IDA Pro, jd-cli or jadx and expose the output in a virtual filesystem"
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        """Get the JSON schema for the tool input."""
        return {
            "type": "object",
            "properties": {
                "artifact_path": {
                    "type": "string",
                    "description": "Path of the file to decompile",
                },
                "include_payload": {
                    "type": "boolean",
                    "description": "Return the decompiled text inline for single-file results",
                    "default": True,
                },
            },
            "required": ["artifact_path"],
        }

    async def execute_tool(
        self,
        arguments: Dict[str, Any],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """Execute the tool with the provided arguments.

        Args:
            arguments: Dictionary of arguments for the tool
            progress_callback: Optional callback receiving cumulative progress out of 100

        Returns:
            Result dictionary with ``success`` and either the result or the error
        """
        artifact_path = arguments.get("artifact_path", "")
        include_payload = arguments.get("include_payload", True)
        progress = 0.0

        async def report(event: ProgressEvent) -> None:
            nonlocal progress
            progress = min(100.0, progress + event.increment_percent)
            if progress_callback:
                await progress_callback(progress, 100.0, event.message)

        try:
            result = await self.orchestrator.decompile(artifact_path, report)
        except DecompileError as e:
            return e.to_dict()

        output = {"success": True, **result.model_dump(mode="json")}
        if not include_payload:
            output.pop("payload", None)
        return output
