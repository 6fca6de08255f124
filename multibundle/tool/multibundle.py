"""Command line tool for building, serving and testing a javascript library."""

import argparse
import asyncio
import logging
import sys
import traceback

from multibundle.exceptions import BuildFailedError, BundleException
from multibundle.task import task_service_context
from . import build, dev, docs, test

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for building a multi-package javascript library.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    build.BuildAction.register(subparsers)
    dev.DevAction.register(subparsers)
    test.TestAction.register(subparsers)
    docs.DocsAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """multibundle command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        with task_service_context():
            asyncio.run(action.run(**vars(args)))
    except BundleException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("multibundle error: ", err, file=sys.stderr)
        if isinstance(err, BuildFailedError):
            for failure in err.failures:
                print(f"  {failure}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
