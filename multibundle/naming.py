"""Build targets and the filenames of the artifacts they produce.

Every artifact filename has the form:

    {name}[-NEXT][.{tag}][.min].js

The global (iife) target has an empty tag so its filename omits the format
segment. Filenames are unique for each combination of package name, module
format, minification and prerelease flag since they also key the bundle cache.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

__all__ = [
    "ModuleFormat",
    "BuildTarget",
    "PackageContext",
    "build_filename",
    "map_file",
    "PRERELEASE_SUFFIX",
]

PRERELEASE_SUFFIX = "-NEXT"
DEFAULT_ENTRY = Path("src/main.js")


class ModuleFormat(Enum):
    """Module formats an artifact can be emitted in."""

    ES_MODULE = ("es6", "esm")
    COMMONJS = ("cjs", "cjs")
    GLOBAL = ("", "iife")

    def __init__(self, tag: str, bundler_format: str) -> None:
        self.tag = tag
        self.bundler_format = bundler_format

    @property
    def postprocessed(self) -> bool:
        """Return True if the format goes through the minifier and pretty-printer.

        ES module output is never post-processed.
        """
        return self is not ModuleFormat.ES_MODULE


@dataclass(frozen=True)
class BuildTarget:
    """One (module format, minified) combination to build into an artifact."""

    module_format: ModuleFormat
    minified: bool
    is_prerelease: bool = False

    @property
    def has_source_map(self) -> bool:
        """Only non-minified commonjs and global artifacts get a source map."""
        return not self.minified and self.module_format.postprocessed


@dataclass(frozen=True, kw_only=True)
class PackageContext:
    """The library being built, fixed for the lifetime of the process."""

    active_package_name: str
    """Name of the package being built, from its package.json."""

    root: Path = Path(".")
    """Root directory of the active package."""

    is_combined_mode: bool = False
    """Whether several member packages are merged into one artifact."""

    member_package_paths: tuple[Path, ...] = field(default_factory=tuple)
    """Root directories of the member packages, in registration order."""

    entry: Path = DEFAULT_ENTRY
    """Entry point relative to a package root."""

    is_prerelease: bool = False
    """Whether artifacts are tagged as NEXT builds."""

    def target(self, module_format: ModuleFormat, minified: bool) -> BuildTarget:
        """Return a BuildTarget carrying this context's prerelease flag."""
        return BuildTarget(
            module_format=module_format,
            minified=minified,
            is_prerelease=self.is_prerelease,
        )


def build_filename(context: PackageContext, target: BuildTarget) -> str:
    """Return the artifact filename for the target."""
    parts = [context.active_package_name]
    if target.is_prerelease:
        parts.append(PRERELEASE_SUFFIX)
    if tag := target.module_format.tag:
        parts.append(f".{tag}")
    if target.minified:
        parts.append(".min")
    parts.append(".js")
    return "".join(parts)


def map_file(filename: str) -> str:
    """Return the source map name for a file by removing the first `.js`.

    The map of `demo.js` is written as `map_file("demo.js.map")`, which
    is `demo.map`.
    """
    return filename.replace(".js", "", 1)
