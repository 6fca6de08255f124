"""multibundle test action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

from multibundle.devloop import run_tests
from multibundle.testrunner import DEFAULT_BROWSER, KarmaRunner

from . import common

_LOGGER = logging.getLogger(__name__)


class TestAction:
    """multibundle test action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "test",
                help="Run the karma tests against the global artifact",
                description="""Build the global artifacts and run karma,
                    rebuilding whenever sources change.""",
            ),
        )
        common.add_common_flags(args)
        args.add_argument(
            "--browser",
            type=str,
            default=DEFAULT_BROWSER,
            help="Browser karma launches, e.g. Chrome, Firefox or PhantomJS",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        prerelease: bool,
        build_dir: pathlib.Path | None,
        root: pathlib.Path | None,
        browser: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        session = common.load_session(build_dir, root, prerelease)
        runner = KarmaRunner(session.paths.test_config, browser=browser)
        await run_tests(session.orchestrator, runner)
