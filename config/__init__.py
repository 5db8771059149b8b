"""
Decompiler Configuration Package.

This package contains the settings store shared by the decompiler engine,
its CLI and its tool surface.
"""

from config.manager import EnvironmentManager, env_manager
from config.types import (
    ToolConfig,
    DecompilerPreferences,
    WorkspaceSettings,
)

# Re-export the default instance for easy access
env = env_manager

__all__ = [
    "EnvironmentManager",
    "env_manager",
    "env",
    "ToolConfig",
    "DecompilerPreferences",
    "WorkspaceSettings",
]
