"""Watch source directories and run a callback when files change."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from fnmatch import fnmatch
import logging
from pathlib import Path

from watchfiles import Change, awatch

from .exceptions import BundleException

__all__ = [
    "watch",
    "pattern_filter",
]

_LOGGER = logging.getLogger(__name__)

DEBOUNCE_MS = 200


def pattern_filter(patterns: Sequence[str]) -> Callable[[Change, str], bool]:
    """Return a watch filter accepting files whose name matches a pattern.

    An empty pattern list accepts every file.
    """

    def func(change: Change, path: str) -> bool:
        if not patterns:
            return True
        name = Path(path).name
        return any(fnmatch(name, pattern) for pattern in patterns)

    return func


async def watch(
    paths: Sequence[Path],
    callback: Callable[[set[Path]], Awaitable[None]],
    *,
    patterns: Sequence[str] = (),
    stop_event: asyncio.Event | None = None,
) -> None:
    """Await the callback with the changed files of each batch of changes.

    Build failures raised by the callback are logged and watching continues,
    so the next save retries the build.
    """
    existing = [path for path in paths if path.exists()]
    for path in paths:
        if path not in existing:
            _LOGGER.warning("Not watching missing path %s", path)
    if not existing:
        # Idle so a loop of watchers is not ended by one with nothing to watch
        await (stop_event or asyncio.Event()).wait()
        return
    _LOGGER.info("Watching %s", ", ".join(str(path) for path in existing))
    async for changes in awatch(
        *existing,
        watch_filter=pattern_filter(patterns),
        stop_event=stop_event,
        debounce=DEBOUNCE_MS,
    ):
        changed = {Path(path) for _, path in changes}
        _LOGGER.debug("Detected changes: %s", sorted(changed))
        try:
            await callback(changed)
        except BundleException as err:
            _LOGGER.error("Rebuild failed: %s", err)
