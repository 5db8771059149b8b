"""Progress normalization.

Backends describe their progress chatter in different ways: a structured
stderr marker (Ghidra), or nothing at all besides output lines (jd-cli, jadx).
The parsers here turn one output line into at most one ProgressEvent and
never raise.
"""

from typing import Optional

from decompile_tools.types import ProgressEvent

GHIDRA_PROGRESS_MARKER = "#DECOMPILE-PROGRESS,"

STDOUT = "stdout"
STDERR = "stderr"


def parse_marker_progress(
    chunk: str, marker: str = GHIDRA_PROGRESS_MARKER
) -> Optional[ProgressEvent]:
    """Parse ``<marker>current,total,label`` into an event worth ``100/total``."""
    if not isinstance(chunk, str):
        return None
    chunk = chunk.strip()
    if not chunk.startswith(marker):
        return None

    fields = chunk[len(marker):].split(",", 2)
    if len(fields) != 3:
        return None
    _, total, label = fields
    try:
        total = int(total)
    except ValueError:
        return None
    if total <= 0:
        return None
    return ProgressEvent(message=label.strip(), increment_percent=100 / total)


class LineProgress:
    """Fixed increment for every output line on one stream."""

    def __init__(self, message: str, increment: float, stream: str = STDOUT):
        self.message = message
        self.increment = increment
        self.stream = stream

    def __call__(self, stream: str, chunk: str) -> Optional[ProgressEvent]:
        if stream != self.stream or not chunk:
            return None
        return ProgressEvent(message=self.message, increment_percent=self.increment)
