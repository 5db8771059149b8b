"""Shared fixtures: isolated settings, fake tool binaries and a scripted runner."""

import os
import stat
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from config.manager import EnvironmentManager
from decompile_tools.command_executor import ProcessHandle, ProcessRunner, RunOptions
from decompile_tools.vfs import MemoryFileSystem

posix_only = pytest.mark.skipif(
    sys.platform == "win32", reason="fake tools are POSIX shell scripts"
)


@pytest.fixture
def settings(tmp_path):
    """Settings that ignore the user's .env and environment."""
    manager = EnvironmentManager(env_file=str(tmp_path / "missing.env"), use_os_environ=False)
    manager.load()
    manager.settings["workspace_root"] = str(tmp_path / "workspaces")
    manager.settings["bundled_tools_root"] = str(tmp_path / "bundled")
    manager.settings["tool_scripts_root"] = str(tmp_path / "scripts")
    return manager


@pytest.fixture
def workspace_root(settings):
    return Path(settings.settings["workspace_root"])


@pytest.fixture
def vfs():
    return MemoryFileSystem()


@pytest.fixture
def make_tool(tmp_path):
    """Write an executable shell script standing in for an external tool."""

    def _make_tool(name: str, body: str) -> str:
        path = tmp_path / "tools" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make_tool


@pytest.fixture
def make_artifact(tmp_path):
    def _make_artifact(name: str, content: bytes = b"\x7fELF") -> str:
        path = tmp_path / "input" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return str(path)

    return _make_artifact


def workspace_entries(root: Path) -> List[str]:
    return sorted(os.listdir(root)) if root.exists() else []


class ScriptedRunner(ProcessRunner):
    """Records every launch and finishes it with a scripted exit code.

    Each script entry is ``(exit_code, outputs)``: ``exit_code`` None simulates
    a spawn failure, ``outputs`` maps the launch arguments to files to create.
    """

    def __init__(self, script: List[Tuple[Optional[int], Optional[Callable[[List[str]], List[str]]]]]):
        super().__init__()
        self.script = list(script)
        self.calls: List[Tuple[str, List[str], RunOptions]] = []

    async def run(self, command, args=None, options=None):
        options = options or RunOptions()
        self.calls.append((command, list(args or []), options))
        handle = ProcessHandle(command, args or [], options)
        exit_code, outputs = self.script.pop(0)

        if exit_code is None:
            handle.spawn_error = FileNotFoundError(2, "No such file or directory", command)
            await handle._finish(None)
            return handle

        for file_path in (outputs(list(args or [])) if outputs else []):
            Path(file_path).parent.mkdir(parents=True, exist_ok=True)
            Path(file_path).write_text("int main(void) { return 0; }\n")
        await handle._finish(exit_code)
        return handle
