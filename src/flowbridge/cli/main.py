"""flowbridge CLI entry point: Click group with subcommands."""

import logging

import click

from flowbridge import __version__


@click.group()
@click.version_option(version=__version__, prog_name="flowbridge")
@click.option("-v", "--verbose", count=True, help="Log repairs (-v) or every gate state (-vv).")
def cli(verbose: int) -> None:
    """flowbridge - turn HTML and CSS into a checked XscpData clipboard document."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# Import and register subcommands
from flowbridge.cli.convert import convert  # noqa: E402
from flowbridge.cli.validate import validate  # noqa: E402
from flowbridge.cli.sanitize import sanitize  # noqa: E402
from flowbridge.cli.route import route  # noqa: E402
from flowbridge.cli.chunk import chunk  # noqa: E402

cli.add_command(convert)
cli.add_command(validate)
cli.add_command(sanitize)
cli.add_command(route)
cli.add_command(chunk)
