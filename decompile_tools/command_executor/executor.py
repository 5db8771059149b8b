import asyncio
import inspect
import json
import logging
import time
import traceback
from collections import deque
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

import psutil

from decompile_tools.command_executor.utils import join_shell_command

OutputCallback = Callable[[str], Union[None, Awaitable[None]]]
ExitCallback = Callable[[Optional[int]], Union[None, Awaitable[None]]]

# Per-line read limit for tool output streams
STREAM_LIMIT = 1024 * 1024

# Create logger with the module name
logger = logging.getLogger(__name__)


def _log_with_context(log_level: int, msg: str, context: Dict[str, Any] = None) -> None:
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


async def _invoke(callback: Callable, *args) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


@dataclass
class RunOptions:
    """Options for a single process launch.

    ``use_shell`` hands the joined command line to the platform shell. The
    caller must pre-quote every argument; never combine it with untrusted
    file names.
    """

    capture_stdout: bool = True
    capture_stderr: bool = True
    use_shell: bool = False
    on_stdout: Optional[OutputCallback] = None
    on_stderr: Optional[OutputCallback] = None
    on_exit: Optional[ExitCallback] = None
    cwd: Optional[str] = None
    diagnostic_lines: int = 20


class ProcessHandle:
    """A launched (or failed-to-launch) external process."""

    def __init__(self, command: str, args: List[str], options: RunOptions):
        self.command = command
        self.args = list(args)
        self.options = options
        self.process: Optional[asyncio.subprocess.Process] = None
        self.pid: Optional[int] = None
        self.returncode: Optional[int] = None
        self.spawn_error: Optional[OSError] = None
        self.terminated = False
        self.start_time = time.time()
        self.stdout_tail: Deque[str] = deque(maxlen=options.diagnostic_lines)
        self.stderr_tail: Deque[str] = deque(maxlen=options.diagnostic_lines)
        self._exited = asyncio.Event()

    @property
    def running(self) -> bool:
        return not self._exited.is_set()

    @property
    def spawned(self) -> bool:
        return self.spawn_error is None

    async def wait(self) -> Optional[int]:
        """Wait for exit; returns the exit code, or None if spawning failed."""
        await self._exited.wait()
        return self.returncode

    def diagnostic(self) -> str:
        """Last lines the tool printed, preferring stderr."""
        if self.spawn_error is not None:
            return str(self.spawn_error)
        lines = self.stderr_tail or self.stdout_tail
        return "\n".join(lines)

    async def _finish(self, returncode: Optional[int]) -> None:
        self.returncode = returncode
        self._exited.set()
        if self.options.on_exit:
            try:
                await _invoke(self.options.on_exit, returncode)
            except Exception as e:
                _log_with_context(
                    logging.WARNING,
                    "Exit callback raised",
                    {"command": self.command, "error": str(e)},
                )

    async def terminate(self, grace: float = 3.0) -> bool:
        """Terminate the process and its children, killing them after ``grace`` seconds.

        Returns:
            True if a termination signal was sent, False if nothing was running
        """
        if self.process is None or not self.running:
            return False

        self.terminated = True
        try:
            children = psutil.Process(self.pid).children(recursive=True)
        except psutil.NoSuchProcess:
            children = []

        _log_with_context(
            logging.INFO,
            "Terminating process",
            {"pid": self.pid, "command": self.command, "children": len(children)},
        )

        for child in children:
            try:
                child.terminate()
            except psutil.NoSuchProcess:
                pass
        try:
            self.process.terminate()
        except ProcessLookupError:
            pass

        try:
            await asyncio.wait_for(self._exited.wait(), grace)
        except asyncio.TimeoutError:
            _log_with_context(
                logging.WARNING,
                f"Process ignored termination for {grace} seconds, killing",
                {"pid": self.pid},
            )
            for child in children:
                try:
                    child.kill()
                except psutil.NoSuchProcess:
                    pass
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
        return True


class ProcessRunner:
    """Spawns external tools and streams their output line by line.

    The runner has no retry or timeout logic. Each call to :meth:`run` starts
    one OS process; ``on_exit`` fires exactly once, with ``None`` when the
    process could not be started.

    Example:
        runner = ProcessRunner()

        handle = await runner.run(
            "jadx", ["-d", out_dir, "app.apk"],
            RunOptions(on_stdout=lambda line: print(line)),
        )
        exit_code = await handle.wait()
    """

    async def run(
        self,
        command: str,
        args: Optional[List[str]] = None,
        options: Optional[RunOptions] = None,
    ) -> ProcessHandle:
        args = list(args or [])
        options = options or RunOptions()
        handle = ProcessHandle(command, args, options)

        stdout = asyncio.subprocess.PIPE if options.capture_stdout else asyncio.subprocess.DEVNULL
        stderr = asyncio.subprocess.PIPE if options.capture_stderr else asyncio.subprocess.DEVNULL

        _log_with_context(
            logging.INFO,
            "Starting process",
            {"command": command, "args": args, "use_shell": options.use_shell},
        )

        try:
            if options.use_shell:
                process = await asyncio.create_subprocess_shell(
                    join_shell_command(command, args),
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=stdout,
                    stderr=stderr,
                    cwd=options.cwd,
                    limit=STREAM_LIMIT,
                )
            else:
                process = await asyncio.create_subprocess_exec(
                    command,
                    *args,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=stdout,
                    stderr=stderr,
                    cwd=options.cwd,
                    limit=STREAM_LIMIT,
                )
        except OSError as e:
            _log_with_context(
                logging.INFO,
                "Process could not be started",
                {"command": command, "error": str(e)},
            )
            handle.spawn_error = e
            await handle._finish(None)
            return handle

        handle.process = process
        handle.pid = process.pid

        _log_with_context(
            logging.INFO,
            "Started process",
            {"command": command, "pid": process.pid},
        )

        asyncio.create_task(self._monitor(handle))
        return handle

    async def _pump(
        self,
        stream: asyncio.StreamReader,
        tail: Deque[str],
        callback: Optional[OutputCallback],
    ) -> None:
        while True:
            try:
                line = await stream.readline()
            except ValueError:
                # Line longer than STREAM_LIMIT, take what is buffered
                line = await stream.read(STREAM_LIMIT)
            if not line:
                break

            text = line.decode("utf-8", errors="replace").rstrip("\r\n")
            tail.append(text)
            if callback is None:
                continue
            try:
                await _invoke(callback, text)
            except Exception as e:
                _log_with_context(
                    logging.WARNING,
                    "Output callback raised",
                    {"error": str(e), "traceback": traceback.format_exc()},
                )

    async def _monitor(self, handle: ProcessHandle) -> None:
        process = handle.process
        readers = []
        if process.stdout is not None:
            readers.append(self._pump(process.stdout, handle.stdout_tail, handle.options.on_stdout))
        if process.stderr is not None:
            readers.append(self._pump(process.stderr, handle.stderr_tail, handle.options.on_stderr))

        try:
            await asyncio.gather(*readers)
        finally:
            returncode = await process.wait()
            _log_with_context(
                logging.INFO,
                "Process exited",
                {
                    "command": handle.command,
                    "pid": process.pid,
                    "returncode": returncode,
                    "terminated": handle.terminated,
                    "duration": time.time() - handle.start_time,
                },
            )
            await handle._finish(returncode)
