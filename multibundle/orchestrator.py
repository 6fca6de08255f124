"""Orchestrator for the build matrix.

The matrix has three module format families:

- ES module: non-minified only
- CommonJS: minified and non-minified
- Global (iife): minified and non-minified

A full build cleans the previous prerelease artifacts and then builds all three
families concurrently. Dev and test runs only rebuild the global family since
that is what local examples and tests load.

Builds of the same artifact are serialized, so a rebuild triggered while a
previous build of that artifact is still running waits for it to finish.
"""

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

import aiofiles.os

from .banner import load_banner
from .cache import BundleCache
from .config import BuildPaths
from .context import trace_context
from .entries import resolve_entries
from .exceptions import (
    BuildFailedError,
    BundleException,
    FilesystemError,
    TargetFailedError,
)
from .naming import BuildTarget, ModuleFormat, PackageContext, build_filename
from .pipeline import Artifact, Toolchain, build_target

__all__ = [
    "Orchestrator",
    "BUILD_MATRIX",
    "PRERELEASE_PATTERNS",
]

_LOGGER = logging.getLogger(__name__)

BUILD_MATRIX: dict[ModuleFormat, tuple[bool, ...]] = {
    ModuleFormat.ES_MODULE: (False,),
    ModuleFormat.COMMONJS: (False, True),
    ModuleFormat.GLOBAL: (False, True),
}
"""Minified states built for each module format."""

PRERELEASE_PATTERNS = ("*NEXT*.js", "*NEXT*.map")


class Orchestrator:
    """Builds the artifacts of one package.

    The orchestrator owns the bundle cache for the process, so repeated builds
    through the same instance start warm.
    """

    def __init__(
        self,
        context: PackageContext,
        *,
        toolchain: Toolchain,
        paths: BuildPaths,
        cache: BundleCache | None = None,
    ) -> None:
        """Initialize the orchestrator."""
        self.context = context
        self.toolchain = toolchain
        self.paths = paths
        self.cache = cache or BundleCache()
        self._locks: dict[str, asyncio.Lock] = {}
        self._banners: dict[bool, str] = {}

    def targets(self, formats: Iterable[ModuleFormat]) -> list[BuildTarget]:
        """Return the targets of the matrix for the module formats."""
        return [
            self.context.target(module_format, minified)
            for module_format in formats
            for minified in BUILD_MATRIX[module_format]
        ]

    def prepare(self) -> None:
        """Check entries and load banners before any artifact is touched.

        Raises `ConfigError` on a misconfigured package or missing template.
        """
        resolve_entries(self.context)
        for minified in (False, True):
            if minified not in self._banners:
                self._banners[minified] = load_banner(
                    self.paths.license,
                    self.paths.banner,
                    self.context.active_package_name,
                    minified,
                )

    async def clean_dist(self) -> list[Path]:
        """Remove previous prerelease artifacts from the dist directory.

        Release artifacts are never removed.
        """
        if not self.context.is_prerelease:
            _LOGGER.debug("Not a prerelease build, nothing to clean")
            return []
        removed: list[Path] = []
        with trace_context("clean:dist"):
            for pattern in PRERELEASE_PATTERNS:
                for path in sorted(self.paths.dist.glob(pattern)):
                    try:
                        await aiofiles.os.remove(path)
                    except OSError as err:
                        raise FilesystemError(f"Unable to remove {path}: {err}") from err
                    removed.append(path)
        _LOGGER.info("Removed %d prerelease artifacts", len(removed))
        return removed

    async def build_one(self, target: BuildTarget) -> Artifact:
        """Build one target, waiting for any in-flight build of the same artifact."""
        self.prepare()
        filename = build_filename(self.context, target)
        lock = self._locks.setdefault(filename, asyncio.Lock())
        if lock.locked():
            _LOGGER.debug("Waiting for in-flight build of %s", filename)
        async with lock:
            try:
                return await build_target(
                    target,
                    self.context,
                    toolchain=self.toolchain,
                    cache=self.cache,
                    banner=self._banners[target.minified],
                    dist=self.paths.dist,
                )
            except BundleException as err:
                _LOGGER.error("Target %s failed: %s", filename, err)
                raise TargetFailedError(filename, str(err)) from err

    async def build_targets(self, targets: Iterable[BuildTarget]) -> list[Artifact]:
        """Build the targets concurrently.

        A failing target does not stop its siblings. Once all have finished a
        `BuildFailedError` listing the failed targets is raised, if any.
        """
        results = await asyncio.gather(
            *(self.build_one(target) for target in targets), return_exceptions=True
        )
        artifacts: list[Artifact] = []
        failures: list[TargetFailedError] = []
        for result in results:
            if isinstance(result, TargetFailedError):
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                artifacts.append(result)
        if failures:
            raise BuildFailedError(failures)
        return artifacts

    async def build(self) -> list[Artifact]:
        """Clean and then build the full matrix."""
        self.prepare()
        with trace_context("build"):
            await self.clean_dist()
            return await self.build_targets(self.targets(BUILD_MATRIX))

    async def bundle_global(self) -> list[Artifact]:
        """Build only the global module family."""
        self.prepare()
        with trace_context("bundle:global"):
            return await self.build_targets(self.targets([ModuleFormat.GLOBAL]))
