from enum import Enum
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
TOOL_SCRIPTS_DIR = PACKAGE_DIR / "tool_scripts"
BUNDLED_TOOLS_DIR = PACKAGE_DIR / "bundled_tools"

GENERATOR_NAME = "decompile-tools"
GENERATOR_VERSION = "0.1.0"

VIRTUAL_FS_SCHEME = "decompileFs"


class ToolId(str, Enum):
    GHIDRA = "ghidra"
    IDA = "ida"
    JDCLI = "jd-cli"
    JADX = "jadx"
    DEX2JAR = "dex2jar"

    def __str__(self) -> str:
        return self.value
