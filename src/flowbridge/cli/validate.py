"""CLI command: flowbridge validate -- preflight an XscpData document."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from flowbridge.builder import loads
from flowbridge.errors import ParseError
from flowbridge.validation import split_by_severity
from flowbridge.validation import validate as run_validate


@click.command()
@click.argument("document", type=click.Path(exists=True))
def validate(document: str) -> None:
    """Run the preflight rules against an XscpData DOCUMENT.

    Prints every issue and exits with code 1 if any issue is fatal.
    """
    doc_path = Path(document)

    try:
        graph = loads(doc_path.read_text(encoding="utf-8"))
    except ParseError as exc:
        click.echo(f"Parse error: {exc}", err=True)
        sys.exit(1)

    issues = run_validate(graph)
    if not issues:
        click.echo(f"OK: {doc_path.name} is valid (0 issues)")
        sys.exit(0)

    for issue in issues:
        click.echo(str(issue))

    fatal, errors, warnings = split_by_severity(issues)
    click.echo()
    click.echo(
        f"Summary: {len(fatal)} fatal, {len(errors)} error(s), {len(warnings)} warning(s)"
    )
    if fatal:
        sys.exit(1)
    sys.exit(0)
