"""Module bundler backed by the esbuild command line tool.

Several entries are bundled into one artifact by piping a generated entry
module that re-exports each entry, in order, to esbuild on stdin.

The returned `BundleState` fingerprints the request and the modification
time and size of every javascript file under the entries' source
directories. A rebuild whose fingerprint is unchanged reuses the previous
output without running esbuild.
"""

from collections.abc import Iterable, Sequence
import hashlib
import json
import logging
from pathlib import Path
import tempfile

import aiofiles

from multibundle import command
from multibundle.exceptions import BundlerError

from .interface import BundleRequest, BundleResult, BundleState, ModuleBundler

__all__ = [
    "EsbuildBundler",
]

_LOGGER = logging.getLogger(__name__)

ESBUILD_BIN = "esbuild"
SOURCE_GLOB = "*.js"
STDIN_SOURCEFILE = "multibundle-entry.js"


def aggregate_entry(entries: Sequence[Path]) -> str:
    """Return a module re-exporting each entry in order."""
    return "".join(
        f"export * from {json.dumps(entry.resolve().as_posix())};\n"
        for entry in entries
    )


def source_inputs(dirs: Iterable[Path]) -> list[str]:
    """Return a sorted description of every javascript file under the dirs."""
    inputs = []
    for source_dir in dict.fromkeys(dirs):
        if not source_dir.is_dir():
            continue
        for path in source_dir.rglob(SOURCE_GLOB):
            stat = path.stat()
            inputs.append(f"{path.as_posix()}:{stat.st_mtime_ns}:{stat.st_size}")
    inputs.sort()
    return inputs


class EsbuildBundler(ModuleBundler):
    """Run `esbuild --bundle` for a request."""

    def __init__(
        self,
        *,
        esbuild_bin: str = ESBUILD_BIN,
        external_candidates: Sequence[str] = (),
        watch_dirs: Sequence[Path] = (),
        resolve_dir: Path | None = None,
        timeout: float | None = command.DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize EsbuildBundler.

        Args:
            esbuild_bin: The esbuild executable.
            external_candidates: Module ids offered to the request's external
                predicate; those it accepts are left unresolved.
            watch_dirs: Extra source directories included in the fingerprint,
                for example shared sources resolved from node_modules.
            resolve_dir: Directory used to resolve the generated entry module.
            timeout: Seconds to wait for esbuild.
        """
        self._esbuild_bin = esbuild_bin
        self._external_candidates = list(external_candidates)
        self._watch_dirs = list(watch_dirs)
        self._resolve_dir = resolve_dir
        self._timeout = timeout

    def _externals(self, request: BundleRequest) -> list[str]:
        return [mod for mod in self._external_candidates if request.external(mod)]

    def _fingerprint(self, request: BundleRequest) -> tuple[str, tuple[str, ...]]:
        dirs = [entry.parent for entry in request.entries] + self._watch_dirs
        inputs = tuple(source_inputs(dirs))
        digest = hashlib.sha256()
        digest.update(request.module_format.bundler_format.encode("utf-8"))
        digest.update((request.global_name or "").encode("utf-8"))
        for value in [str(entry) for entry in request.entries]:
            digest.update(value.encode("utf-8"))
        for value in self._externals(request):
            digest.update(f"external:{value}".encode("utf-8"))
        for value in inputs:
            digest.update(value.encode("utf-8"))
        return digest.hexdigest(), inputs

    def _args(self, request: BundleRequest, outfile: Path) -> list[str]:
        args = [self._esbuild_bin]
        if len(request.entries) == 1:
            args.append(str(request.entries[0]))
        else:
            args.append(f"--sourcefile={STDIN_SOURCEFILE}")
            if self._resolve_dir:
                args.append(f"--resolve-dir={self._resolve_dir}")
        args.extend(
            [
                "--bundle",
                f"--format={request.module_format.bundler_format}",
                f"--outfile={outfile}",
                "--log-level=warning",
            ]
        )
        if request.global_name and request.module_format.bundler_format == "iife":
            args.append(f"--global-name={request.global_name}")
        args.extend(f"--external:{mod}" for mod in self._externals(request))
        return args

    async def bundle(
        self, request: BundleRequest, state: BundleState | None = None
    ) -> BundleResult:
        if not request.entries:
            raise BundlerError("No entry points to bundle")
        try:
            fingerprint, inputs = self._fingerprint(request)
        except OSError as err:
            raise BundlerError(f"Unable to read sources: {err}") from err
        if state is not None and state.fingerprint == fingerprint:
            _LOGGER.debug("Sources unchanged, reusing previous bundle")
            return BundleResult(code=state.code, state=state, warm=True)

        stdin = None
        if len(request.entries) > 1:
            stdin = aggregate_entry(request.entries).encode("utf-8")
        with tempfile.TemporaryDirectory(prefix="multibundle-") as tmp_dir:
            outfile = Path(tmp_dir) / "bundle.js"
            cmd = command.Command(
                self._args(request, outfile),
                exc=BundlerError,
                timeout=self._timeout,
            )
            await command.run(cmd, stdin=stdin)
            try:
                async with aiofiles.open(outfile, encoding="utf-8") as out:
                    code = await out.read()
            except OSError as err:
                raise BundlerError(f"esbuild produced no output: {err}") from err

        new_state = BundleState(fingerprint=fingerprint, code=code, inputs=inputs)
        return BundleResult(code=code, state=new_state)
