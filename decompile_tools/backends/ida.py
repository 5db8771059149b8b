import os
from typing import List

from decompile_tools.command_executor.utils import is_windows, quote_argument
from decompile_tools.constants import TOOL_SCRIPTS_DIR, ToolId
from decompile_tools.errors import DangerousFilename
from decompile_tools.interfaces import BackendInterface
from decompile_tools.plugin import register_backend
from decompile_tools.types import BuildSpec, FileOutput


def toggle_word_size(tool_path: str) -> str:
    """Swap between the 32-bit and 64-bit launcher of an IDA installation.

    Only the basename changes: ``idaw.exe`` <-> ``idaw64.exe``,
    ``idat`` <-> ``idat64``.
    """
    directory, basename = os.path.split(tool_path)
    stem, ext = os.path.splitext(basename)
    if "64" in stem:
        stem = stem.replace("64", "", 1)
    else:
        stem = f"{stem}64"
    return os.path.join(directory, stem + ext)


@register_backend
class IdaBackend(BackendInterface):
    """IDA Pro batch mode with the Hex-Rays batch decompile script.

    IDA's own parser reads the ``-S`` script line, so the workspace path is
    quoted inside that argument even when no shell is involved. The shell is
    only used on Windows, where quoting the artifact path cannot be made safe;
    artifacts containing a double quote are therefore always refused.
    """

    tool_id = ToolId.IDA.value
    source_language = "cpp"
    virtual_extension = ".cpp"

    SCRIPT = "ida_batch_decompile.py"
    OUTPUT_EXTENSION = ".c"

    def __init__(self, settings=None, use_shell=None):
        super().__init__(settings)
        self.use_shell = is_windows() if use_shell is None else use_shell

    def check_artifact(self, artifact_path: str) -> None:
        if '"' in artifact_path:
            raise DangerousFilename(
                f"Refusing to pass a file name containing a quote to {self.tool_id}: {artifact_path}",
                tool_id=self.tool_id,
            )

    def variants(self, tool_path: str) -> List[str]:
        alternate = toggle_word_size(tool_path)
        if alternate == tool_path:
            return [tool_path]
        return [tool_path, alternate]

    def build(self, tool_path: str, artifact_path: str, workspace_path: str) -> BuildSpec:
        self.check_artifact(artifact_path)

        scripts_root = self.setting("tool_scripts_root", str(TOOL_SCRIPTS_DIR))
        script = os.path.join(scripts_root, self.SCRIPT)
        stem = os.path.splitext(os.path.basename(artifact_path))[0]
        output_file = os.path.join(workspace_path, stem + self.OUTPUT_EXTENSION)

        if self.use_shell:
            # Inner quotes are escaped for the shell, IDA sees -o"<workspace>"
            script_line = f'{script} -o\\"{workspace_path}\\"'
            args = [
                "-A", "-B", "-M",
                f"-o{quote_argument(workspace_path)}",
                f"-S{quote_argument(script_line)}",
                quote_argument(artifact_path),
            ]
        else:
            script_line = f'{script} -o"{workspace_path}"'
            args = [
                "-A", "-B", "-M",
                f"-o{workspace_path}",
                f"-S{script_line}",
                artifact_path,
            ]

        return BuildSpec(
            command=tool_path,
            args=args,
            expected_output=FileOutput(path=output_file),
            use_shell=self.use_shell,
        )
