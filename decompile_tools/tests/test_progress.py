import pytest

from decompile_tools.backends import GhidraBackend, JadxBackend, JdCliBackend
from decompile_tools.progress import (
    GHIDRA_PROGRESS_MARKER,
    STDERR,
    STDOUT,
    LineProgress,
    parse_marker_progress,
)


def test_marker_line_yields_share_of_total():
    """A marker line is worth 100/total percent and carries the label."""
    event = parse_marker_progress("#DECOMPILE-PROGRESS,3,40,FUN_00401000")
    assert event is not None
    assert event.message == "FUN_00401000"
    assert event.increment_percent == pytest.approx(2.5)


def test_marker_label_may_contain_commas():
    event = parse_marker_progress("#DECOMPILE-PROGRESS,1,4,operator,(int)")
    assert event.message == "operator,(int)"
    assert event.increment_percent == pytest.approx(25.0)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "INFO  ANALYZING all memory and code",
        "#DECOMPILE-PROGRESS,1,0,main",
        "#DECOMPILE-PROGRESS,1,-2,main",
        "#DECOMPILE-PROGRESS,1,many,main",
        "#DECOMPILE-PROGRESS,1,2",
        "prefix #DECOMPILE-PROGRESS,1,2,main",
    ],
)
def test_non_marker_lines_yield_nothing(line):
    assert parse_marker_progress(line) is None


def test_marker_parser_tolerates_non_text():
    assert parse_marker_progress(None) is None
    assert parse_marker_progress(b"#DECOMPILE-PROGRESS,1,2,main") is None


def test_marker_constant_matches_post_script():
    assert GHIDRA_PROGRESS_MARKER == "#DECOMPILE-PROGRESS,"


def test_line_progress_only_counts_its_stream():
    progress = LineProgress("java decompile", 4.0)
    event = progress(STDOUT, "Decompiling com/example/Main.class")
    assert event.message == "java decompile"
    assert event.increment_percent == 4.0
    assert progress(STDERR, "warning") is None
    assert progress(STDOUT, "") is None


def test_ghidra_parses_stderr_markers_only(settings):
    backend = GhidraBackend(settings)
    line = "#DECOMPILE-PROGRESS,1,2,main"
    assert backend.parse_progress(STDOUT, line) is None
    assert backend.parse_progress(STDERR, line).increment_percent == pytest.approx(50.0)


def test_java_backends_use_configured_increments(settings):
    settings.settings["jdcli_progress_increment"] = 1.5
    assert JdCliBackend(settings).parse_progress(STDOUT, "x").increment_percent == 1.5
    assert JadxBackend(settings).parse_progress(STDOUT, "x").increment_percent == 20.0
