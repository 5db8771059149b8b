from typing import Optional

from decompile_tools.constants import ToolId
from decompile_tools.interfaces import BackendInterface
from decompile_tools.plugin import register_backend
from decompile_tools.progress import LineProgress
from decompile_tools.types import BuildSpec, DirOutput, ProgressEvent


@register_backend
class JadxBackend(BackendInterface):
    """jadx decompiles dex/apk/jar/class input into ``sources/`` and ``resources/``."""

    tool_id = ToolId.JADX.value
    source_language = "java"

    def __init__(self, settings=None):
        super().__init__(settings)
        # jadx prints far fewer lines than jd-cli
        self._progress = LineProgress(
            "java decompile", self.setting("jadx_progress_increment", 20.0)
        )

    def build(self, tool_path: str, artifact_path: str, workspace_path: str) -> BuildSpec:
        return BuildSpec(
            command=tool_path,
            args=["-d", workspace_path, artifact_path],
            expected_output=DirOutput(path=workspace_path),
        )

    def parse_progress(self, stream: str, chunk: str) -> Optional[ProgressEvent]:
        return self._progress(stream, chunk)
