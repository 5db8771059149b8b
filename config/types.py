from typing import Optional
from pydantic import BaseModel, Field


class ToolConfig(BaseModel):
    """Model representing the configuration of one external decompiler tool"""

    tool_id: str
    path: Optional[str] = None  # Explicit binary path, user-overridable


class DecompilerPreferences(BaseModel):
    """Model representing which backend is preferred for each artifact kind"""

    default_decompiler: str = "ghidra"
    java_decompiler: str = "jadx"
    apk_decompiler: str = "jadx"

    @property
    def prefers_ida(self) -> bool:
        return "idaPro" in self.default_decompiler

    @property
    def java_prefers_jdcli(self) -> bool:
        return self.java_decompiler == "jd-cli"

    @property
    def apk_prefers_jdcli(self) -> bool:
        return self.apk_decompiler == "jd-cli"


class WorkspaceSettings(BaseModel):
    """Model representing where and how per-invocation workspaces are managed"""

    root: Optional[str] = None
    cleanup_retry_attempts: int = Field(default=3, ge=1)
    cleanup_retry_delay: float = Field(default=0.5, ge=0)
