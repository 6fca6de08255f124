"""Shared fixtures for multibundle tests."""

from pathlib import Path

import pytest

from multibundle.config import BuildPaths

LICENSE = "/*!\n* <%= name %>\n* Released under the MIT license\n*/\n"
BANNER = "/*! <%= name %> - short banner */\n"


@pytest.fixture
def build_paths(tmp_path: Path) -> BuildPaths:
    """Create a library root and a build directory with banner templates."""
    root = tmp_path / "lib"
    (root / "src").mkdir(parents=True)
    (root / "src" / "main.js").write_text("export * from './Demo.js';\n")
    build_dir = tmp_path / "build"
    (build_dir / "buildAssets").mkdir(parents=True)
    (build_dir / "buildAssets" / "LICENSE").write_text(LICENSE)
    (build_dir / "buildAssets" / "BANNER").write_text(BANNER)
    return BuildPaths(root=root, build_dir=build_dir)
