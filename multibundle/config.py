"""Configuration for multibundle.

The build is configured by a `config.json` in the build directory, optionally
overridden by a `config.local.json` beside it. Keys in the local file replace
keys of the same name in the shared file. Member package locations for a
combined build are given as `<lib>_path` keys, e.g. `"easel_path": "../EaselJS"`.

The library being built is located relative to the working directory: when
multibundle runs from inside a library's `node_modules` the library root is two
directories up, otherwise it is the working directory itself.
"""

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField, InvalidFieldValue

from .bundler import BeautifyOptions, MinifierOptions
from .command import DEFAULT_TIMEOUT
from .exceptions import ConfigError
from .naming import DEFAULT_ENTRY, PackageContext

__all__ = [
    "BuildConfig",
    "BuildPaths",
    "load_config",
    "read_package_name",
    "resolve_root",
    "make_context",
]

_LOGGER = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
LOCAL_CONFIG_FILE = "config.local.json"
PACKAGE_FILE = "package.json"
PATH_SUFFIX = "_path"
NODE_MODULES = "node_modules"


@dataclass
class BuildConfig(DataClassDictMixin):
    """Merged build configuration."""

    uglify_min: MinifierOptions = field(
        metadata=field_options(alias="uglifyMin"),
        default_factory=MinifierOptions,
    )
    """Minifier options for minified artifacts."""

    uglify_non_min: MinifierOptions = field(
        metadata=field_options(alias="uglifyNonMin"),
        default_factory=lambda: MinifierOptions(compress=False),
    )
    """Minifier options for non-minified artifacts."""

    beautify: BeautifyOptions = field(default_factory=BeautifyOptions)
    """Pretty-printer options for non-minified artifacts."""

    package_paths: dict[str, str] = field(default_factory=dict)
    """Root directory of each member package, collected from `<lib>_path` keys."""

    combined_name: str = "createjs"
    """Package name that selects a combined build."""

    combined_members: list[str] = field(
        default_factory=lambda: ["easel", "tween", "sound", "preload"]
    )
    """Member packages of a combined build, in registration order."""

    global_name: str = field(
        metadata=field_options(alias="moduleName"), default="createjs"
    )
    """Global variable the iife artifact assigns."""

    shared_src: str = "node_modules/createjs/src"
    """Shared sources, relative to the library root, also documented by yuidoc."""

    esbuild_bin: str = "esbuild"

    command_timeout: float = DEFAULT_TIMEOUT
    """Seconds to wait for each external build command."""

    class Config(BaseConfig):
        allow_deserialization_not_by_alias = True

    def member_paths(self, build_dir: Path) -> tuple[Path, ...]:
        """Return the root of each member package, relative to the build dir."""
        paths = []
        for member in self.combined_members:
            if (path := self.package_paths.get(member)) is None:
                raise ConfigError(f"Missing '{member}{PATH_SUFFIX}' for combined build")
            paths.append(build_dir / path)
        return tuple(paths)


@dataclass(frozen=True, kw_only=True)
class BuildPaths:
    """Locations used by the build, docs, dev and test steps."""

    root: Path
    """Root of the library being built."""

    build_dir: Path
    """Directory holding the build configuration and assets."""

    @property
    def dist(self) -> Path:
        return self.root / "dist"

    @property
    def docs(self) -> Path:
        return self.root / "docs"

    @property
    def license(self) -> Path:
        return self.build_dir / "buildAssets" / "LICENSE"

    @property
    def banner(self) -> Path:
        return self.build_dir / "buildAssets" / "BANNER"

    @property
    def entry(self) -> Path:
        return DEFAULT_ENTRY

    @property
    def serve(self) -> Path:
        return self.root

    @property
    def source_dir(self) -> Path:
        return self.root / "src"

    @property
    def examples(self) -> Path:
        return self.root / "examples"

    @property
    def extras(self) -> Path:
        return self.root / "extras"

    @property
    def test_config(self) -> Path:
        return (self.root / "tests" / "karma.conf.js").absolute()

    @property
    def docs_sass(self) -> Path:
        return self.build_dir / "docsTheme" / "assets" / "scss" / "main.scss"

    @property
    def docs_css(self) -> Path:
        return self.build_dir / "docsTheme" / "assets" / "css"


def resolve_root(cwd: Path) -> Path:
    """Return the library root for a build run from the working directory."""
    if NODE_MODULES in cwd.parts:
        return cwd / ".." / ".."
    return cwd


def _read_json(path: Path) -> dict[str, Any]:
    try:
        content = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as err:
        raise ConfigError(f"Configuration file not found: {path}") from err
    except (OSError, ValueError) as err:
        raise ConfigError(f"Unable to read configuration {path}: {err}") from err
    if not isinstance(content, dict):
        raise ConfigError(f"Configuration {path} must contain a JSON object")
    return content


def load_config(build_dir: Path) -> BuildConfig:
    """Load the shared configuration merged with any local overrides."""
    raw = _read_json(build_dir / CONFIG_FILE)
    local_path = build_dir / LOCAL_CONFIG_FILE
    if local_path.exists():
        _LOGGER.debug("Applying local configuration %s", local_path)
        raw = {**raw, **_read_json(local_path)}
    package_paths = {
        key.removesuffix(PATH_SUFFIX): value
        for key, value in raw.items()
        if key.endswith(PATH_SUFFIX) and isinstance(value, str)
    }
    raw["package_paths"] = {**package_paths, **raw.get("package_paths", {})}
    try:
        return BuildConfig.from_dict(raw)
    except (MissingField, InvalidFieldValue, ValueError, TypeError) as err:
        raise ConfigError(f"Invalid configuration in {build_dir}: {err}") from err


def read_package_name(root: Path) -> str:
    """Return the name of the package at the library root."""
    package = _read_json(root / PACKAGE_FILE)
    if not isinstance(name := package.get("name"), str) or not name:
        raise ConfigError(f"{root / PACKAGE_FILE} has no package name")
    return name


def make_context(
    paths: BuildPaths, config: BuildConfig, name: str, prerelease: bool
) -> PackageContext:
    """Return the PackageContext for a build of the named package."""
    combined = name == config.combined_name
    return PackageContext(
        active_package_name=name,
        root=paths.root,
        is_combined_mode=combined,
        member_package_paths=config.member_paths(paths.build_dir) if combined else (),
        entry=paths.entry,
        is_prerelease=prerelease,
    )
