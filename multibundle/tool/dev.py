"""multibundle dev action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

from multibundle.devloop import run_dev
from multibundle.devserver import DevServer

from . import common

_LOGGER = logging.getLogger(__name__)


class DevAction:
    """multibundle dev action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "dev",
                help="Serve the library and rebuild the global artifacts on change",
                description="""Build the global artifacts, serve the library
                    root and reload the browser whenever sources, examples or
                    extras change.""",
            ),
        )
        common.add_common_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        prerelease: bool,
        build_dir: pathlib.Path | None,
        root: pathlib.Path | None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        session = common.load_session(build_dir, root, prerelease)
        await run_dev(session.orchestrator, DevServer(session.paths.serve))
