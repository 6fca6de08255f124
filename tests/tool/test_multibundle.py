"""Tests for the multibundle command line tool."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from multibundle.bundler import BundleRequest, JsBeautifier, RjsminMinifier
from multibundle.config import BuildConfig, BuildPaths, load_config
from multibundle.exceptions import BuildFailedError, TargetFailedError
from multibundle.naming import ModuleFormat
from multibundle.pipeline import Toolchain
from multibundle.tool.common import make_toolchain
from multibundle.tool.multibundle import _make_parser, main

from ..fakes import FakeBundler, FakeEsbuild


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """A library checkout with its build configuration."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.js").write_text("export {};\n")
    (tmp_path / "package.json").write_text(json.dumps({"name": "demo"}))
    (tmp_path / "config.json").write_text(json.dumps({}))
    (tmp_path / "buildAssets").mkdir()
    (tmp_path / "buildAssets" / "LICENSE").write_text("/*! <%= name %> license */\n")
    (tmp_path / "buildAssets" / "BANNER").write_text("/*! <%= name %> */\n")
    return tmp_path


def fake_toolchain(paths: BuildPaths, config: BuildConfig) -> Toolchain:
    return Toolchain(
        bundler=FakeBundler(),
        minifier=RjsminMinifier(),
        pretty_printer=JsBeautifier(config.beautify),
        global_name=config.global_name,
    )


def test_parser() -> None:
    """Test the flags of each action."""
    parser = _make_parser()
    args = parser.parse_args(["build", "--NEXT", "--build-dir", "/lib"])
    assert args.prerelease
    assert args.build_dir == Path("/lib")
    assert args.root is None

    args = parser.parse_args(["test", "--browser", "Firefox"])
    assert args.browser == "Firefox"
    assert not args.prerelease

    args = parser.parse_args(["test"])
    assert args.browser == "Chrome"


def test_missing_command() -> None:
    """Test an action is required."""
    with pytest.raises(SystemExit):
        main([])


def test_build(library: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test a full build from the command line."""
    with patch("multibundle.tool.common.make_toolchain", new=fake_toolchain):
        main(["build", "--build-dir", str(library), "--NEXT"])

    printed = sorted(Path(line).name for line in capsys.readouterr().out.split())
    assert printed == [
        "demo-NEXT.cjs.js",
        "demo-NEXT.cjs.min.js",
        "demo-NEXT.es6.js",
        "demo-NEXT.js",
        "demo-NEXT.min.js",
    ]
    assert (library / "dist" / "demo-NEXT.map").exists()


def test_config_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test a configuration error exits with an error message."""
    with pytest.raises(SystemExit) as exc_info:
        main(["build", "--build-dir", str(tmp_path)])

    assert exc_info.value.code == 1
    assert "Configuration file not found" in capsys.readouterr().err


def test_build_failures_reported(
    library: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test each failed target is listed."""
    session = MagicMock()
    session.orchestrator.build = AsyncMock(
        side_effect=BuildFailedError(
            [
                TargetFailedError("demo.cjs.js", "Could not resolve ./Stage.js"),
                TargetFailedError("demo.cjs.min.js", "Could not resolve ./Stage.js"),
            ]
        )
    )
    with patch("multibundle.tool.common.load_session", return_value=session):
        with pytest.raises(SystemExit) as exc_info:
            main(["build", "--build-dir", str(library)])

    assert exc_info.value.code == 1
    err = capsys.readouterr().err
    assert "2 target(s) failed" in err
    assert "Target demo.cjs.js failed: Could not resolve ./Stage.js" in err
    assert "Target demo.cjs.min.js failed" in err


def test_docs(library: Path) -> None:
    """Test the docs action runs the docs pipeline."""
    with patch("multibundle.docs.build_docs", new_callable=AsyncMock) as mock_docs:
        main(["docs", "--build-dir", str(library)])

    paths, config = mock_docs.call_args.args
    assert paths.root == library
    assert isinstance(config, BuildConfig)


def test_dev(library: Path) -> None:
    """Test the dev action serves the library root."""
    with patch("multibundle.tool.dev.run_dev", new_callable=AsyncMock) as mock_dev:
        main(["dev", "--build-dir", str(library)])

    orchestrator, server = mock_dev.call_args.args
    assert orchestrator.context.active_package_name == "demo"
    assert server.serve_command().cmd[3] == str(library)


def test_test(library: Path) -> None:
    """Test the test action runs karma in the requested browser."""
    with patch("multibundle.tool.test.run_tests", new_callable=AsyncMock) as mock_run:
        main(["test", "--build-dir", str(library), "--browser", "PhantomJS"])

    _, runner = mock_run.call_args.args
    cmd = runner.command().cmd
    assert cmd[2] == str(library / "tests" / "karma.conf.js")
    assert cmd[-1] == "mocha"


async def test_toolchain_from_config(library: Path) -> None:
    """Test the esbuild invocation follows the configuration."""
    (library / "config.json").write_text(
        json.dumps(
            {"moduleName": "lib", "esbuild_bin": "/opt/esbuild", "externals": ["lib"]}
        )
    )
    paths = BuildPaths(root=library, build_dir=library)
    toolchain = make_toolchain(paths, load_config(library))
    fake = FakeEsbuild()
    with patch("multibundle.bundler.esbuild.command.run", new=fake.run):
        await toolchain.bundler.bundle(
            BundleRequest(
                entries=[library / "src" / "main.js"],
                module_format=ModuleFormat.GLOBAL,
                global_name=toolchain.global_name,
            )
        )

    cmd = fake.calls[0][0].cmd
    assert cmd[0] == "/opt/esbuild"
    assert "--global-name=lib" in cmd
    assert not any(arg.startswith("--external") for arg in cmd)
