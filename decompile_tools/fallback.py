import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from decompile_tools.errors import DecompileError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FallbackPolicy:
    """Retry a failed invocation with the next tool variant.

    Attempts run strictly one after another; the next variant starts only
    once the previous attempt has returned or raised. Only retryable
    failures (non-zero exit, spawn failure) move on to the next variant, and
    at most ``max_fallbacks`` extra attempts are made.
    """

    def __init__(self, max_fallbacks: int = 1):
        self.max_fallbacks = max_fallbacks

    async def run(self, variants: Sequence[str], attempt: Callable[[str], Awaitable[T]]) -> T:
        candidates = list(variants)[: self.max_fallbacks + 1]
        if not candidates:
            raise ValueError("No tool variants to run")

        for index, variant in enumerate(candidates):
            try:
                return await attempt(variant)
            except DecompileError as e:
                if not e.retryable or index == len(candidates) - 1:
                    raise
                logger.info(
                    f"{variant} failed ({e.kind}, exit code {e.exit_code}), "
                    f"retrying with {candidates[index + 1]}"
                )
