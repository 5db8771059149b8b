import os
from typing import Optional

from decompile_tools.constants import GENERATOR_NAME, TOOL_SCRIPTS_DIR, ToolId
from decompile_tools.interfaces import BackendInterface
from decompile_tools.plugin import register_backend
from decompile_tools.progress import STDERR, parse_marker_progress
from decompile_tools.types import BuildSpec, FileOutput, ProgressEvent


@register_backend
class GhidraBackend(BackendInterface):
    """Ghidra's headless analyzer with a post-script that writes one C-like file.

    The script reports ``#DECOMPILE-PROGRESS,<i>,<total>,<function>`` on stderr.
    """

    tool_id = ToolId.GHIDRA.value
    source_language = "cpp"
    virtual_extension = ".cpp"

    POST_SCRIPT = "ghidra_decompile.py"

    def build(self, tool_path: str, artifact_path: str, workspace_path: str) -> BuildSpec:
        scripts_root = self.setting("tool_scripts_root", str(TOOL_SCRIPTS_DIR))
        output_file = os.path.join(
            workspace_path, f"{os.path.basename(artifact_path)}.decompiled"
        )
        return BuildSpec(
            command=tool_path,
            args=[
                workspace_path,
                GENERATOR_NAME,
                "-import", artifact_path,
                "-scriptPath", scripts_root,
                "-postscript", self.POST_SCRIPT, output_file,
            ],
            expected_output=FileOutput(path=output_file),
        )

    def parse_progress(self, stream: str, chunk: str) -> Optional[ProgressEvent]:
        if stream != STDERR:
            return None
        return parse_marker_progress(chunk)
