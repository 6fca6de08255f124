"""Build a single artifact.

For each target the pipeline resolves the entries, bundles them (warm when
the cache holds state for the artifact), prepends the banner, post-processes
commonjs and global output, and writes the artifact to the output directory.

Example usage:
```
from multibundle import pipeline
from multibundle.cache import BundleCache
from multibundle.naming import ModuleFormat

artifact = await pipeline.build_target(
    context.target(ModuleFormat.GLOBAL, minified=True),
    context,
    toolchain=toolchain,
    cache=BundleCache(),
    banner=banner,
    dist=Path("dist"),
)
print(f"Wrote {artifact.filename}")
```

Steps for one target run strictly in sequence. A failure in any step raises
and nothing is written for that target.
"""

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path

import aiofiles
import aiofiles.os
from aiofiles.ospath import exists

from .banner import comment_policy
from .bundler import (
    BundleRequest,
    Minifier,
    MinifierOptions,
    ModuleBundler,
    PrettyPrinter,
)
from .cache import BundleCache
from .context import trace_context
from .entries import resolve_entries
from .exceptions import FilesystemError
from .naming import BuildTarget, PackageContext, build_filename, map_file

__all__ = [
    "Artifact",
    "Toolchain",
    "build_target",
    "write_artifact",
]

_LOGGER = logging.getLogger(__name__)

SOURCE_MAPPING_URL = "//# sourceMappingURL={name}"


@dataclass(frozen=True, kw_only=True)
class Artifact:
    """A built artifact and its optional source map."""

    filename: str
    code: str
    source_map: str | None = None
    map_filename: str | None = None


@dataclass(kw_only=True)
class Toolchain:
    """The external capabilities used to build artifacts."""

    bundler: ModuleBundler
    minifier: Minifier
    pretty_printer: PrettyPrinter
    min_options: MinifierOptions = field(default_factory=MinifierOptions)
    non_min_options: MinifierOptions = field(
        default_factory=lambda: MinifierOptions(compress=False)
    )
    global_name: str | None = None
    """Global variable assigned by iife artifacts."""


def identity_map(filename: str, code: str) -> str:
    """Return a source map mapping each line of the artifact to itself."""
    lines = code.count("\n") + 1
    return json.dumps(
        {
            "version": 3,
            "file": filename,
            "sources": [filename],
            "sourcesContent": [code],
            "names": [],
            "mappings": ";".join(["AAAA"] + ["AACA"] * (lines - 1)),
        }
    )


async def build_target(
    target: BuildTarget,
    context: PackageContext,
    *,
    toolchain: Toolchain,
    cache: BundleCache,
    banner: str,
    dist: Path,
) -> Artifact:
    """Build the artifact for the target and write it to the dist directory."""
    filename = build_filename(context, target)
    with trace_context(filename):
        entries = resolve_entries(context)
        request = BundleRequest(
            entries=entries,
            module_format=target.module_format,
            global_name=toolchain.global_name,
        )
        result = await toolchain.bundler.bundle(request, cache.get(filename))
        cache.put(filename, result.state)

        code = f"{banner}\n{result.code}"
        if target.module_format.postprocessed:
            policy = comment_policy(target.minified)
            if target.minified:
                code = toolchain.minifier.minify(code, policy, toolchain.min_options)
            else:
                code = toolchain.minifier.minify(
                    code, policy, toolchain.non_min_options
                )
                code = toolchain.pretty_printer.format(code)

        artifact = Artifact(filename=filename, code=code)
        if target.has_source_map:
            map_filename = map_file(f"{filename}.map")
            source_map = identity_map(filename, code)
            code = "\n".join(
                [code.rstrip("\n"), SOURCE_MAPPING_URL.format(name=map_filename), ""]
            )
            artifact = Artifact(
                filename=filename,
                code=code,
                source_map=source_map,
                map_filename=map_filename,
            )

        await write_artifact(dist, artifact)
    _LOGGER.info(
        "Built %s%s", filename, " (cached bundle)" if result.warm else ""
    )
    return artifact


async def write_artifact(dist: Path, artifact: Artifact) -> None:
    """Write the artifact and its map, replacing any previous build."""
    files = [(artifact.filename, artifact.code)]
    if artifact.source_map is not None and artifact.map_filename:
        files.append((artifact.map_filename, artifact.source_map))
    staged: list[tuple[Path, Path]] = []
    try:
        await aiofiles.os.makedirs(dist, exist_ok=True)
        for name, content in files:
            tmp_path = dist / f".{name}.tmp"
            staged.append((tmp_path, dist / name))
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as out:
                await out.write(content)
        # The map lands before the artifact that references it
        for tmp_path, path in reversed(staged):
            await aiofiles.os.replace(tmp_path, path)
    except OSError as err:
        for tmp_path, _ in staged:
            if await exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
        raise FilesystemError(f"Unable to write {artifact.filename}: {err}") from err
