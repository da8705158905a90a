from typing import Any, Mapping, Protocol


class Collector(Protocol):
    """A protocol for diff sources."""

    def collect(self) -> Mapping[str, Any]:
        """Collects the raw diff and returns it under the ``diff`` key."""
        ...
