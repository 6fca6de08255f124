"""Cache of bundler state for warm rebuilds.

The cache persists for the lifetime of the process and maps an artifact
filename to the state the bundler returned the last time that artifact was
built. It is passed explicitly into each build, so tests may use a fresh or
pre-seeded instance. Entries are never evicted; the number of keys is bounded
by the build matrix.
"""

import logging

from .bundler.interface import BundleState

__all__ = [
    "BundleCache",
]

_LOGGER = logging.getLogger(__name__)


class BundleCache:
    """Bundler state keyed by artifact filename."""

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._states: dict[str, BundleState] = {}

    def get(self, filename: str) -> BundleState | None:
        """Return the last state for the artifact, or None for a cold build."""
        state = self._states.get(filename)
        _LOGGER.debug("Bundle cache %s for %s", "hit" if state else "miss", filename)
        return state

    def put(self, filename: str, state: BundleState) -> None:
        """Record the state of a successful build of the artifact."""
        self._states[filename] = state

    def __contains__(self, filename: object) -> bool:
        return filename in self._states

    def __len__(self) -> int:
        return len(self._states)
