"""Tests for building a single artifact."""

import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from multibundle.banner import MinifiedCommentPolicy, NonMinifiedCommentPolicy
from multibundle.bundler import (
    JsBeautifier,
    Minifier,
    MinifierOptions,
    PrettyPrinter,
    RjsminMinifier,
)
from multibundle.cache import BundleCache
from multibundle.exceptions import BundlerError, FilesystemError, PostprocessError
from multibundle.naming import ModuleFormat, PackageContext
from multibundle.pipeline import Toolchain, build_target

from .fakes import FakeBundler, PassthroughMinifier, PassthroughPrinter

LICENSE = "/*!\n* demo\n* Released under the MIT license\n*/"
BANNER = "/*! demo - short banner */"


@pytest.fixture
def context(tmp_path: Path) -> PackageContext:
    """A single library context."""
    return PackageContext(active_package_name="demo", root=tmp_path / "lib")


@pytest.fixture
def dist(tmp_path: Path) -> Path:
    """The output directory."""
    return tmp_path / "dist"


def real_toolchain(bundler: FakeBundler) -> Toolchain:
    """Toolchain with the real minifier and pretty-printer."""
    return Toolchain(
        bundler=bundler,
        minifier=RjsminMinifier(),
        pretty_printer=JsBeautifier(),
        global_name="createjs",
    )


async def test_non_minified_global(context: PackageContext, dist: Path) -> None:
    """Test a non-minified global artifact starts with the short banner."""
    artifact = await build_target(
        context.target(ModuleFormat.GLOBAL, minified=False),
        context,
        toolchain=real_toolchain(FakeBundler()),
        cache=BundleCache(),
        banner=BANNER,
        dist=dist,
    )

    assert artifact.filename == "demo.js"
    content = (dist / "demo.js").read_text()
    assert content.splitlines()[0] == BANNER
    assert "@module" not in content
    assert "Copyright" not in content
    assert "/* helper */" in content
    assert content.rstrip("\n").splitlines()[-1] == "//# sourceMappingURL=demo.map"

    source_map = json.loads((dist / "demo.map").read_text())
    assert source_map["version"] == 3
    assert source_map["file"] == "demo.js"
    assert not (dist / "demo.js.map").exists()


async def test_minified_commonjs(context: PackageContext, dist: Path) -> None:
    """Test a minified artifact keeps only the license banner and has no map."""
    artifact = await build_target(
        context.target(ModuleFormat.COMMONJS, minified=True),
        context,
        toolchain=real_toolchain(FakeBundler()),
        cache=BundleCache(),
        banner=LICENSE,
        dist=dist,
    )

    assert artifact.filename == "demo.cjs.min.js"
    assert artifact.source_map is None
    content = (dist / "demo.cjs.min.js").read_text()
    assert content.startswith(LICENSE + "\n")
    assert content.count("/*") == 1
    assert "constructor" not in content
    assert sorted(path.name for path in dist.iterdir()) == ["demo.cjs.min.js"]


async def test_es_module_not_postprocessed(
    context: PackageContext, dist: Path
) -> None:
    """Test ES module output skips the minifier and pretty-printer."""
    minifier = MagicMock(spec=Minifier)
    pretty_printer = MagicMock(spec=PrettyPrinter)
    bundler = FakeBundler()
    await build_target(
        context.target(ModuleFormat.ES_MODULE, minified=False),
        context,
        toolchain=Toolchain(
            bundler=bundler, minifier=minifier, pretty_printer=pretty_printer
        ),
        cache=BundleCache(),
        banner=BANNER,
        dist=dist,
    )

    minifier.minify.assert_not_called()
    pretty_printer.format.assert_not_called()
    assert sorted(path.name for path in dist.iterdir()) == ["demo.es6.js"]
    assert (dist / "demo.es6.js").read_text() == f"{BANNER}\n{bundler.code}"


async def test_postprocess_options(context: PackageContext, dist: Path) -> None:
    """Test each minification state uses its own policy and options."""
    minifier = PassthroughMinifier()
    printer = PassthroughPrinter()
    min_options = MinifierOptions(compress=True)
    non_min_options = MinifierOptions(compress=False)
    toolchain = Toolchain(
        bundler=FakeBundler(),
        minifier=minifier,
        pretty_printer=printer,
        min_options=min_options,
        non_min_options=non_min_options,
    )
    for minified in (True, False):
        await build_target(
            context.target(ModuleFormat.GLOBAL, minified),
            context,
            toolchain=toolchain,
            cache=BundleCache(),
            banner=BANNER,
            dist=dist,
        )

    assert isinstance(minifier.calls[0][0], MinifiedCommentPolicy)
    assert minifier.calls[0][1] is min_options
    assert isinstance(minifier.calls[1][0], NonMinifiedCommentPolicy)
    assert minifier.calls[1][1] is non_min_options
    assert printer.calls == 1


async def test_prerelease_map_name(tmp_path: Path, dist: Path) -> None:
    """Test the map of a prerelease global artifact is named by stripping .js."""
    context = PackageContext(
        active_package_name="demo", root=tmp_path, is_prerelease=True
    )
    artifact = await build_target(
        context.target(ModuleFormat.GLOBAL, minified=False),
        context,
        toolchain=real_toolchain(FakeBundler()),
        cache=BundleCache(),
        banner=BANNER,
        dist=dist,
    )

    assert artifact.filename == "demo-NEXT.js"
    assert artifact.map_filename == "demo-NEXT.map"
    assert sorted(path.name for path in dist.iterdir()) == [
        "demo-NEXT.js",
        "demo-NEXT.map",
    ]


async def test_rebuild_reuses_cache(context: PackageContext, dist: Path) -> None:
    """Test a second build receives the state stored by the first."""
    bundler = FakeBundler()
    cache = BundleCache()
    target = context.target(ModuleFormat.COMMONJS, minified=False)
    toolchain = real_toolchain(bundler)

    await build_target(
        target, context, toolchain=toolchain, cache=cache, banner=BANNER, dist=dist
    )
    first_state = cache.get("demo.cjs.js")
    assert first_state is not None
    assert bundler.calls[0][1] is None

    await build_target(
        target, context, toolchain=toolchain, cache=cache, banner=BANNER, dist=dist
    )
    assert bundler.calls[1][1] is first_state
    assert cache.get("demo.cjs.js") is not first_state


async def test_seeded_cache(context: PackageContext, dist: Path) -> None:
    """Test a pre-seeded cache is passed to the first build."""
    bundler = FakeBundler()
    cache = BundleCache()
    await build_target(
        context.target(ModuleFormat.GLOBAL, True),
        context,
        toolchain=real_toolchain(bundler),
        cache=cache,
        banner=LICENSE,
        dist=dist,
    )
    seeded = cache.get("demo.min.js")

    other = FakeBundler()
    await build_target(
        context.target(ModuleFormat.GLOBAL, True),
        context,
        toolchain=real_toolchain(other),
        cache=cache,
        banner=LICENSE,
        dist=dist,
    )
    assert other.calls[0][1] is seeded


async def test_bundler_failure_writes_nothing(
    context: PackageContext, dist: Path
) -> None:
    """Test a failed bundle leaves no artifact and no cache entry."""
    bundler = FakeBundler(fail_formats={ModuleFormat.GLOBAL})
    cache = BundleCache()
    with pytest.raises(BundlerError):
        await build_target(
            context.target(ModuleFormat.GLOBAL, False),
            context,
            toolchain=real_toolchain(bundler),
            cache=cache,
            banner=BANNER,
            dist=dist,
        )
    assert not dist.exists()
    assert "demo.js" not in cache


async def test_postprocess_failure_writes_nothing(
    context: PackageContext, dist: Path
) -> None:
    """Test a failed minification leaves no artifact."""
    with pytest.raises(PostprocessError):
        await build_target(
            context.target(ModuleFormat.GLOBAL, True),
            context,
            toolchain=real_toolchain(FakeBundler(code="var s = 'unterminated;\n")),
            cache=BundleCache(),
            banner=LICENSE,
            dist=dist,
        )
    assert not dist.exists()


async def test_write_failure(context: PackageContext, tmp_path: Path) -> None:
    """Test an unwritable output directory is a filesystem error."""
    dist = tmp_path / "dist"
    dist.write_text("not a directory")
    with pytest.raises(FilesystemError, match="demo.es6.js"):
        await build_target(
            context.target(ModuleFormat.ES_MODULE, False),
            context,
            toolchain=real_toolchain(FakeBundler()),
            cache=BundleCache(),
            banner=BANNER,
            dist=dist,
        )



async def test_map_write_failure_keeps_previous_build(
    context: PackageContext, dist: Path
) -> None:
    """Test a failed map write leaves the previous artifact in place."""
    dist.mkdir()
    (dist / "demo.js").write_text("previous\n")
    (dist / "demo.map").write_text("{}")
    replaced: list[str] = []

    async def replace(src: Path, dst: Path) -> None:
        replaced.append(Path(dst).name)
        if str(dst).endswith(".map"):
            raise OSError("disk full")
        os.replace(src, dst)

    with patch("multibundle.pipeline.aiofiles.os.replace", new=replace):
        with pytest.raises(FilesystemError, match="disk full"):
            await build_target(
                context.target(ModuleFormat.GLOBAL, minified=False),
                context,
                toolchain=real_toolchain(FakeBundler()),
                cache=BundleCache(),
                banner=BANNER,
                dist=dist,
            )

    assert replaced == ["demo.map"]
    assert (dist / "demo.js").read_text() == "previous\n"
    assert (dist / "demo.map").read_text() == "{}"
    assert sorted(path.name for path in dist.iterdir()) == ["demo.js", "demo.map"]


async def test_combined_entries(tmp_path: Path, dist: Path) -> None:
    """Test a combined build hands every member entry to the bundler in order."""
    context = PackageContext(
        active_package_name="createjs",
        is_combined_mode=True,
        member_package_paths=(tmp_path / "easel", tmp_path / "tween"),
    )
    bundler = FakeBundler()
    await build_target(
        context.target(ModuleFormat.GLOBAL, False),
        context,
        toolchain=real_toolchain(bundler),
        cache=BundleCache(),
        banner=BANNER,
        dist=dist,
    )

    request = bundler.calls[0][0]
    assert list(request.entries) == [
        tmp_path / "easel" / "src" / "main.js",
        tmp_path / "tween" / "src" / "main.js",
    ]
    assert request.global_name == "createjs"
    assert request.external("createjs") is False
    assert (dist / "createjs.js").exists()
