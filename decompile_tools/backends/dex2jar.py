import os

from decompile_tools.constants import ToolId
from decompile_tools.interfaces import BackendInterface
from decompile_tools.plugin import register_backend
from decompile_tools.types import BuildSpec, FileOutput


@register_backend
class Dex2JarBackend(BackendInterface):
    """Converts an Android package into a jar for a Java decompiler stage."""

    tool_id = ToolId.DEX2JAR.value

    def build(self, tool_path: str, artifact_path: str, workspace_path: str) -> BuildSpec:
        stem = os.path.splitext(os.path.basename(artifact_path))[0]
        output_file = os.path.join(workspace_path, f"{stem}.jar")
        return BuildSpec(
            command=tool_path,
            args=["-o", output_file, artifact_path],
            expected_output=FileOutput(path=output_file),
        )
