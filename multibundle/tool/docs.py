"""multibundle docs action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

from multibundle import docs

from . import common

_LOGGER = logging.getLogger(__name__)


class DocsAction:
    """multibundle docs action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "docs",
                help="Generate the api documentation",
                description="""Clean the docs directory, compile the docs theme
                    stylesheet and run yuidoc.""",
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
        await docs.build_docs(session.paths, session.config)
