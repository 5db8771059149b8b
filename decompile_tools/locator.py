"""Resolution of external tool binaries.

Order: explicit setting, platform auto-detection (Ghidra only, through its
``ghidraRun`` launcher), then a copy bundled with this package. Licensed tools
(Ghidra, IDA Pro) are never bundled.
"""

import logging
import os
import shutil
from typing import List, Optional

from config.manager import EnvironmentManager
from decompile_tools.command_executor.utils import get_current_os
from decompile_tools.constants import BUNDLED_TOOLS_DIR, ToolId
from decompile_tools.errors import ToolNotFound

logger = logging.getLogger(__name__)

# tool id -> (path below the bundled tools root, windows suffix, posix suffix)
BUNDLED_TOOLS = {
    ToolId.JDCLI.value: ("jd-cli-1.0.1.Final-dist/jd-cli", ".bat", ""),
    ToolId.JADX.value: ("jadx-1.1.0/bin/jadx", ".bat", ""),
    ToolId.DEX2JAR.value: ("dex-tools-2.1-SNAPSHOT/d2j-dex2jar", ".bat", ".sh"),
}

UNIX_LIKE = ("darwin", "linux", "freebsd", "openbsd")


class ToolLocator:
    """Finds the binary for a tool id or raises ToolNotFound with a hint."""

    def __init__(self, settings: EnvironmentManager, os_type: Optional[str] = None):
        self.settings = settings
        self.os_type = os_type or get_current_os()

    def resolve(self, tool_id: str) -> str:
        configured = self.settings.get_tool_config(tool_id).path
        if configured:
            return configured

        detected = self.detect(tool_id)
        if detected:
            logger.info(f"Auto-detected {tool_id} at {detected}")
            self.settings.persist_tool_path(tool_id, detected)
            return detected

        bundled = self.bundled_path(tool_id)
        if bundled and os.path.isfile(bundled):
            return bundled

        raise self._not_found(tool_id, bundled)

    def detect(self, tool_id: str) -> Optional[str]:
        """Platform heuristics; only tools with a known companion launcher."""
        if tool_id != ToolId.GHIDRA.value or self.os_type not in UNIX_LIKE:
            return None

        ghidra_run = shutil.which("ghidraRun")
        if not ghidra_run:
            return None
        candidate = os.path.join(
            os.path.dirname(os.path.realpath(ghidra_run)), "support", "analyzeHeadless"
        )
        return candidate if os.path.isfile(candidate) else None

    def bundled_path(self, tool_id: str) -> Optional[str]:
        if tool_id not in BUNDLED_TOOLS:
            return None
        relative, windows_suffix, posix_suffix = BUNDLED_TOOLS[tool_id]
        suffix = windows_suffix if self.os_type == "windows" else posix_suffix
        root = self.settings.get_setting("bundled_tools_root", str(BUNDLED_TOOLS_DIR))
        return os.path.join(root, *relative.split("/")) + suffix

    def _not_found(self, tool_id: str, bundled: Optional[str]) -> ToolNotFound:
        setting = EnvironmentManager.TOOL_PATH_SETTINGS[tool_id]
        where = f"the `{setting}` setting ({setting.upper()} in your .env)"
        install_command: Optional[List[str]] = None

        if tool_id == ToolId.GHIDRA.value:
            if self.os_type == "darwin" and shutil.which("brew"):
                install_command = ["brew", "install", "--cask", "ghidra"]
                hint = (
                    "Please run `brew install --cask ghidra` or install it from the "
                    f"official website and configure the path in {where}."
                )
            elif self.os_type == "windows":
                hint = (
                    "Install Ghidra from the official website and configure the path to "
                    f"`<ghidra>/support/analyzeHeadless.bat` in {where}."
                )
            else:
                hint = (
                    "Please use your package manager or install it from the official "
                    "website and configure the path to "
                    f"`<ghidra>/support/analyzeHeadless` in {where}."
                )
            message = "`Ghidra` is required to decompile binaries."
        elif tool_id == ToolId.IDA.value:
            message = "`IdaPro` is required to decompile binaries."
            hint = f"Please configure the path to `<ida>/ida[wt][64][.exe]` in {where}."
        else:
            message = f"`{tool_id}` could not be found."
            hint = (
                f"The bundled copy is missing ({bundled}). Install {tool_id} and "
                f"configure its path in {where}."
            )

        return ToolNotFound(
            f"{message} {hint}",
            tool_id=tool_id,
            hint=hint,
            install_command=install_command,
        )
