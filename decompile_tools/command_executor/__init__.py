from decompile_tools.command_executor.executor import (
    ProcessRunner,
    ProcessHandle,
    RunOptions,
)
from decompile_tools.command_executor.temp_file_manager import (
    Workspace,
    WorkspaceManager,
)
from decompile_tools.command_executor.utils import (
    get_current_os,
    is_windows,
    join_shell_command,
    quote_argument,
)

__all__ = [
    "ProcessRunner",
    "ProcessHandle",
    "RunOptions",
    "Workspace",
    "WorkspaceManager",
    "get_current_os",
    "is_windows",
    "join_shell_command",
    "quote_argument",
]
