"""Command line tool for provisioning resources with terraform and consul."""

import argparse
import asyncio
import logging
import sys
import traceback

from zealot.exceptions import FatalError, ZealotException
from . import render, run, template

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for provisioning a resource from consul config.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    run.RunAction.register(subparsers)
    render.RenderAction.register(subparsers)
    template.TemplateAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Zealot command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except FatalError as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        _LOGGER.critical("Run aborted: %s", err)
        print("zealot fatal error: ", err, file=sys.stderr)
        sys.exit(1)
    except ZealotException as err:
        # Init and plan failures are recoverable for library callers, but a
        # command line run has nothing left to do.
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("zealot error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
