import asyncio
import time

import pytest

from conftest import posix_only
from decompile_tools.command_executor import ProcessRunner, RunOptions
from decompile_tools.command_executor.utils import join_shell_command, quote_argument


@pytest.fixture
def runner():
    return ProcessRunner()


def test_quote_argument():
    assert quote_argument("a b") == '"a b"'
    assert quote_argument('"already"') == '"already"'


def test_join_shell_command_quotes_command_with_spaces():
    assert join_shell_command("/opt/my tools/idat", ["-A", '"x y"']) == '"/opt/my tools/idat" -A "x y"'
    assert join_shell_command("idat", ["-A"]) == "idat -A"


@posix_only
@pytest.mark.asyncio
async def test_lines_arrive_in_order(runner):
    """Each stream delivers complete lines in the order they were written."""
    stdout, stderr = [], []
    handle = await runner.run(
        "/bin/sh",
        ["-c", "for i in 1 2 3 4 5; do echo out$i; echo err$i >&2; done"],
        RunOptions(on_stdout=stdout.append, on_stderr=stderr.append),
    )
    assert await handle.wait() == 0
    assert stdout == [f"out{i}" for i in range(1, 6)]
    assert stderr == [f"err{i}" for i in range(1, 6)]


@posix_only
@pytest.mark.asyncio
async def test_exit_callback_fires_once_with_code(runner):
    exits = []

    async def on_exit(code):
        exits.append(code)

    handle = await runner.run("/bin/sh", ["-c", "exit 7"], RunOptions(on_exit=on_exit))
    assert await handle.wait() == 7
    assert await handle.wait() == 7
    assert exits == [7]
    assert not handle.running


@pytest.mark.asyncio
async def test_spawn_failure_is_reported_not_raised(runner, tmp_path):
    exits = []
    handle = await runner.run(
        str(tmp_path / "no-such-tool"), ["-x"], RunOptions(on_exit=exits.append)
    )
    assert await handle.wait() is None
    assert not handle.spawned
    assert exits == [None]
    assert "no-such-tool" in handle.diagnostic()


@posix_only
@pytest.mark.asyncio
async def test_diagnostic_prefers_stderr_tail(runner):
    handle = await runner.run(
        "/bin/sh",
        ["-c", "echo progress; for i in $(seq 1 30); do echo fail$i >&2; done; exit 1"],
        RunOptions(diagnostic_lines=5),
    )
    assert await handle.wait() == 1
    assert handle.diagnostic().splitlines() == [f"fail{i}" for i in range(26, 31)]


@posix_only
@pytest.mark.asyncio
async def test_callback_errors_do_not_stop_the_stream(runner):
    seen = []

    def on_stdout(line):
        seen.append(line)
        raise RuntimeError("sink broke")

    handle = await runner.run("/bin/sh", ["-c", "echo a; echo b"], RunOptions(on_stdout=on_stdout))
    assert await handle.wait() == 0
    assert seen == ["a", "b"]


@posix_only
@pytest.mark.asyncio
async def test_shell_mode_runs_joined_command_line(runner, tmp_path):
    lines = []
    handle = await runner.run(
        "echo", ['"hello world"', "|", "tr", "a-z", "A-Z"],
        RunOptions(use_shell=True, on_stdout=lines.append),
    )
    assert await handle.wait() == 0
    assert lines == ["HELLO WORLD"]


@posix_only
@pytest.mark.asyncio
async def test_exec_mode_does_not_interpret_shell_syntax(runner):
    lines = []
    handle = await runner.run("echo", ["$HOME", "|", "x"], RunOptions(on_stdout=lines.append))
    assert await handle.wait() == 0
    assert lines == ["$HOME | x"]


@posix_only
@pytest.mark.asyncio
async def test_uncaptured_streams(runner):
    lines = []
    handle = await runner.run(
        "/bin/sh", ["-c", "echo hidden"],
        RunOptions(capture_stdout=False, on_stdout=lines.append),
    )
    assert await handle.wait() == 0
    assert lines == []


@posix_only
@pytest.mark.asyncio
async def test_terminate_stops_process(runner):
    handle = await runner.run("/bin/sh", ["-c", "sleep 30"])
    assert handle.running
    started = time.time()
    assert await handle.terminate(grace=2.0) is True
    code = await asyncio.wait_for(handle.wait(), 5)
    assert code != 0
    assert handle.terminated
    assert time.time() - started < 5
    assert await handle.terminate() is False


@posix_only
@pytest.mark.asyncio
async def test_terminate_kills_after_grace(runner):
    """A process that ignores SIGTERM is killed once the grace period ends."""
    handle = await runner.run("/bin/sh", ["-c", "trap '' TERM; sleep 30; echo done"])
    await asyncio.sleep(0.2)
    await handle.terminate(grace=0.2)
    assert await asyncio.wait_for(handle.wait(), 5) is not None
