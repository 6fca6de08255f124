"""Documentation pipeline: clean, compile the theme stylesheet, run yuidoc.

Both the stylesheet compiler and the doc generator are external commands.
yuidoc reads the `yuidoc.json` in the library root.
"""

import logging
import shutil

import aiofiles.os
from aiofiles.ospath import isdir

from . import command
from .config import BuildConfig, BuildPaths
from .context import trace_context
from .exceptions import FilesystemError

__all__ = [
    "build_docs",
    "clean_docs",
    "compile_sass",
    "yuidoc",
]

_LOGGER = logging.getLogger(__name__)

SASS_BIN = "sass"
YUIDOC_BIN = "yuidoc"
CSS_NAME = "main.css"


async def clean_docs(paths: BuildPaths) -> None:
    """Remove everything under the docs directory."""
    if not await isdir(paths.docs):
        return
    try:
        for entry in await aiofiles.os.listdir(paths.docs):
            path = paths.docs / entry
            if await isdir(path):
                shutil.rmtree(path)
            else:
                await aiofiles.os.remove(path)
    except OSError as err:
        raise FilesystemError(f"Unable to clean {paths.docs}: {err}") from err


async def compile_sass(paths: BuildPaths) -> None:
    """Compile the docs theme stylesheet, compressed."""
    await aiofiles.os.makedirs(paths.docs_css, exist_ok=True)
    await command.run(
        command.Command(
            [
                SASS_BIN,
                "--style=compressed",
                "--no-source-map",
                str(paths.docs_sass),
                str(paths.docs_css / CSS_NAME),
            ]
        )
    )


async def yuidoc(paths: BuildPaths, config: BuildConfig) -> None:
    """Generate the api docs for the shared and library sources."""
    await command.run(
        command.Command(
            [YUIDOC_BIN, f"./{config.shared_src}", "./src"],
            cwd=paths.root,
            timeout=config.command_timeout,
        )
    )


async def build_docs(paths: BuildPaths, config: BuildConfig) -> None:
    """Run the docs steps in order."""
    with trace_context("docs"):
        with trace_context("clean:docs"):
            await clean_docs(paths)
        with trace_context("sass:docs"):
            await compile_sass(paths)
        with trace_context("yuidoc"):
            await yuidoc(paths, config)
    _LOGGER.info("Built docs in %s", paths.docs)
