from typing import Protocol

from utils.trace import GenerationTrace


class GenerationStrategy(Protocol):
    """One self-contained way of producing a commit message."""

    name: str
    requires_credential: bool

    async def generate(self, raw_diff: str, max_length: int, trace: GenerationTrace) -> str:
        """
        Produces a commit message for the diff.

        Raises:
            CommitCraftException: If this strategy cannot produce a message.
        """
        ...
