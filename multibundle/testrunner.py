"""Run the library's karma tests against the global artifact."""

import logging
from pathlib import Path

from . import command

__all__ = [
    "KarmaRunner",
    "reporters",
]

_LOGGER = logging.getLogger(__name__)

KARMA_BIN = "karma"
DEFAULT_BROWSER = "Chrome"
HEADLESS_BROWSERS = {"PhantomJS"}


def is_headless(browser: str) -> bool:
    """Return True if the browser has no window to show the html reporter in."""
    return browser in HEADLESS_BROWSERS or browser.endswith("Headless")


def reporters(browser: str) -> list[str]:
    """Return the karma reporters for the browser."""
    result = ["mocha"]
    if not is_headless(browser):
        result.append("kjhtml")
    return result


class KarmaRunner:
    """Start a karma server for the configured browser."""

    def __init__(
        self,
        config_file: Path,
        browser: str = DEFAULT_BROWSER,
        karma_bin: str = KARMA_BIN,
    ) -> None:
        """Initialize KarmaRunner."""
        self._config_file = config_file
        self._browser = browser
        self._bin = karma_bin

    def command(self) -> command.Command:
        """Return the karma command line."""
        return command.Command(
            [
                self._bin,
                "start",
                str(self._config_file),
                "--browsers",
                self._browser,
                "--reporters",
                ",".join(reporters(self._browser)),
            ],
            timeout=None,
            capture=False,
        )

    async def run(self) -> None:
        """Run karma until its server exits, raising if any test fails."""
        _LOGGER.info("Running karma in %s", self._browser)
        await command.run(self.command())
