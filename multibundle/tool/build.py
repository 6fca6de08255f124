"""multibundle build action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

from . import common

_LOGGER = logging.getLogger(__name__)


class BuildAction:
    """multibundle build action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "build",
                help="Build every artifact of the library",
                description="""Clean prerelease artifacts and build the es6,
                    cjs and global artifacts, minified and non-minified, into
                    the dist directory.""",
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
        artifacts = await session.orchestrator.build()
        for artifact in artifacts:
            print(session.paths.dist / artifact.filename)
