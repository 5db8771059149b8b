"""
Workspace manager for decompiler invocations.

Every backend invocation gets its own temporary directory. The directory is
removed only after every process launched into it has exited, on every code
path, with retries for files a tool still holds briefly after exit.
"""

import asyncio
import json
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from config.types import WorkspaceSettings
from decompile_tools.command_executor.executor import ProcessHandle

# Create logger with the module name
logger = logging.getLogger(__name__)


def _log_with_context(log_level: int, msg: str, context: Optional[Dict[str, Any]] = None) -> None:
    """Helper function for structured logging with context

    Args:
        log_level: The logging level to use
        msg: The message to log
        context: Optional dictionary of contextual information
    """
    if context is None:
        context = {}

    context["timestamp"] = datetime.now(UTC).isoformat()

    structured_msg = f"{msg} | Context: {json.dumps(context, default=str)}"
    logger.log(log_level, structured_msg)


class Workspace:
    """A temporary directory exclusively owned by one backend invocation."""

    def __init__(self, path: Path, prefix: str):
        self.path = path
        self.prefix = prefix
        self.handles: List[ProcessHandle] = []
        self.released = False

    def __fspath__(self) -> str:
        return str(self.path)

    def track(self, handle: ProcessHandle) -> None:
        """Bind a process to this workspace so release waits for it."""
        self.handles.append(handle)

    @property
    def active_handles(self) -> List[ProcessHandle]:
        return [handle for handle in self.handles if handle.running]

    async def terminate_processes(self) -> None:
        for handle in self.active_handles:
            await handle.terminate()

    async def wait_for_processes(self) -> None:
        for handle in self.handles:
            await handle.wait()


class WorkspaceManager:
    """
    Creates and removes per-invocation workspaces.

    Features:
    - Workspaces live under a configurable root (system temp dir by default)
    - Release waits for tracked processes before deleting anything
    - Retry with exponential backoff for directories that resist removal
    - Metrics for created/removed/failed workspaces
    """

    def __init__(self, settings: Optional[WorkspaceSettings] = None):
        """Initialize the WorkspaceManager.

        Args:
            settings: Optional workspace settings; defaults apply when omitted
        """
        settings = settings or WorkspaceSettings()
        self.root = Path(settings.root) if settings.root else Path(tempfile.gettempdir())
        self.cleanup_retry_attempts = settings.cleanup_retry_attempts
        self.cleanup_retry_delay = settings.cleanup_retry_delay
        self.active: Dict[str, Workspace] = {}

        self.metrics = {
            "workspaces_created": 0,
            "workspaces_removed": 0,
            "cleanup_failures": 0,
            "retry_successes": 0,
        }

    def create(self, prefix: str = "decompile") -> Workspace:
        """Create a new empty workspace directory."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = Path(tempfile.mkdtemp(prefix=f"{prefix}_", dir=str(self.root)))
        workspace = Workspace(path, prefix)
        self.active[str(path)] = workspace
        self.metrics["workspaces_created"] += 1

        _log_with_context(
            logging.DEBUG,
            "Created workspace",
            {"path": str(path), "prefix": prefix},
        )
        return workspace

    async def release(self, workspace: Workspace) -> bool:
        """Wait for the workspace's processes, then remove the directory.

        Returns:
            True if the directory is gone, False if every retry failed
        """
        if workspace.released:
            return True

        await workspace.wait_for_processes()

        for attempt in range(self.cleanup_retry_attempts):
            try:
                if workspace.path.exists():
                    shutil.rmtree(workspace.path)
                workspace.released = True
                self.active.pop(str(workspace.path), None)
                self.metrics["workspaces_removed"] += 1
                if attempt > 0:
                    self.metrics["retry_successes"] += 1

                _log_with_context(
                    logging.DEBUG,
                    "Removed workspace",
                    {"path": str(workspace.path), "attempt": attempt + 1},
                )
                return True
            except OSError as e:
                _log_with_context(
                    logging.WARNING,
                    f"Workspace removal attempt {attempt + 1} failed",
                    {
                        "path": str(workspace.path),
                        "attempt": attempt + 1,
                        "max_attempts": self.cleanup_retry_attempts,
                        "error": str(e),
                    },
                )
                if attempt < self.cleanup_retry_attempts - 1:
                    # Exponential backoff
                    await asyncio.sleep(self.cleanup_retry_delay * (2 ** attempt))

        self.metrics["cleanup_failures"] += 1
        return False

    @asynccontextmanager
    async def workspace(self, prefix: str = "decompile") -> AsyncIterator[Workspace]:
        """Scoped workspace: created on entry, released on exit."""
        workspace = self.create(prefix)
        try:
            yield workspace
        finally:
            await self.release(workspace)

    def get_metrics(self) -> Dict[str, Any]:
        return {
            **self.metrics,
            "active_workspaces": len(self.active),
            "root": str(self.root),
        }
