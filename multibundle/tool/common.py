"""Flags and setup shared by the multibundle actions."""

from argparse import ArgumentParser
from dataclasses import dataclass
import logging
import pathlib

from multibundle.bundler import EsbuildBundler, JsBeautifier, RjsminMinifier
from multibundle.config import (
    BuildConfig,
    BuildPaths,
    load_config,
    make_context,
    read_package_name,
    resolve_root,
)
from multibundle.naming import PackageContext
from multibundle.orchestrator import Orchestrator
from multibundle.pipeline import Toolchain

_LOGGER = logging.getLogger(__name__)


def add_common_flags(args: ArgumentParser) -> None:
    """Add flags common to every action."""
    args.add_argument(
        "--NEXT",
        dest="prerelease",
        action="store_true",
        default=False,
        help="Build prerelease artifacts tagged -NEXT and clean previous ones",
    )
    args.add_argument(
        "--build-dir",
        type=pathlib.Path,
        default=None,
        help="Directory holding config.json and the build assets (default: cwd)",
    )
    args.add_argument(
        "--root",
        type=pathlib.Path,
        default=None,
        help="Root of the library to build (default: inferred from the build dir)",
    )


@dataclass
class Session:
    """Everything an action needs, loaded once at startup."""

    paths: BuildPaths
    config: BuildConfig
    context: PackageContext
    orchestrator: Orchestrator


def make_toolchain(paths: BuildPaths, config: BuildConfig) -> Toolchain:
    """Return the toolchain described by the configuration."""
    return Toolchain(
        bundler=EsbuildBundler(
            esbuild_bin=config.esbuild_bin,
            watch_dirs=[paths.root / config.shared_src],
            resolve_dir=paths.root,
            timeout=config.command_timeout,
        ),
        minifier=RjsminMinifier(),
        pretty_printer=JsBeautifier(config.beautify),
        min_options=config.uglify_min,
        non_min_options=config.uglify_non_min,
        global_name=config.global_name,
    )


def load_session(
    build_dir: pathlib.Path | None,
    root: pathlib.Path | None,
    prerelease: bool,
) -> Session:
    """Load configuration and create the orchestrator for the library."""
    build_dir = build_dir or pathlib.Path.cwd()
    paths = BuildPaths(root=root or resolve_root(build_dir), build_dir=build_dir)
    config = load_config(build_dir)
    name = read_package_name(paths.root)
    context = make_context(paths, config, name, prerelease)
    _LOGGER.debug(
        "Building %s (combined=%s, prerelease=%s)",
        name,
        context.is_combined_mode,
        prerelease,
    )
    orchestrator = Orchestrator(
        context, toolchain=make_toolchain(paths, config), paths=paths
    )
    return Session(paths=paths, config=config, context=context, orchestrator=orchestrator)
