"""Local dev server with live reload, backed by the browser-sync command."""

import logging
from pathlib import Path

from . import command

__all__ = [
    "DevServer",
]

_LOGGER = logging.getLogger(__name__)

BROWSER_SYNC_BIN = "browser-sync"


class DevServer:
    """Serve the library root so examples and extras load the local build."""

    def __init__(self, base_dir: Path, browser_sync_bin: str = BROWSER_SYNC_BIN) -> None:
        """Initialize DevServer."""
        self._base_dir = base_dir
        self._bin = browser_sync_bin

    def serve_command(self) -> command.Command:
        """Return the long running command that serves the base directory."""
        return command.Command(
            [self._bin, "start", "--server", str(self._base_dir), "--no-open"],
            timeout=None,
            capture=False,
        )

    async def serve(self) -> None:
        """Run the server until it exits or is cancelled."""
        _LOGGER.info("Serving %s", self._base_dir)
        await command.run(self.serve_command())

    async def reload(self) -> None:
        """Tell connected browsers to reload."""
        _LOGGER.debug("Reloading browsers")
        await command.run(command.Command([self._bin, "reload"]))
