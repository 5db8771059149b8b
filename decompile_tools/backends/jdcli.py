from typing import Optional

from decompile_tools.constants import ToolId
from decompile_tools.interfaces import BackendInterface
from decompile_tools.plugin import register_backend
from decompile_tools.progress import LineProgress
from decompile_tools.types import BuildSpec, DirOutput, ProgressEvent


@register_backend
class JdCliBackend(BackendInterface):
    """jd-cli writes one .java file per class into the output directory."""

    tool_id = ToolId.JDCLI.value
    source_language = "java"

    def __init__(self, settings=None):
        super().__init__(settings)
        self._progress = LineProgress(
            "java decompile", self.setting("jdcli_progress_increment", 4.0)
        )

    def build(self, tool_path: str, artifact_path: str, workspace_path: str) -> BuildSpec:
        return BuildSpec(
            command=tool_path,
            args=["--outputDir", workspace_path, artifact_path],
            expected_output=DirOutput(path=workspace_path),
        )

    def parse_progress(self, stream: str, chunk: str) -> Optional[ProgressEvent]:
        return self._progress(stream, chunk)
