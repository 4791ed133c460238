"""CLI command: flowbridge sanitize -- repair an XscpData document."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from flowbridge.builder import dumps, loads
from flowbridge.errors import ParseError
from flowbridge.repair import sanitize as run_sanitize


@click.command()
@click.argument("document", type=click.Path(exists=True))
@click.option("--out", type=click.Path(), help="Where to write the repaired document.")
def sanitize(document: str, out: str | None) -> None:
    """Apply every repair to DOCUMENT and print what changed.

    The repaired document goes to --out, or to stdout without it. Exits
    with code 1 if fatal issues remain after repair.
    """
    try:
        graph = loads(Path(document).read_text(encoding="utf-8"))
    except ParseError as exc:
        click.echo(f"Parse error: {exc}", err=True)
        sys.exit(1)

    result = run_sanitize(graph)
    for fix in result.fixes:
        click.echo(f"fixed: {fix}", err=out is None)
    for issue in result.issues:
        click.echo(str(issue), err=out is None)

    text = dumps(result.graph)
    if out:
        Path(out).write_text(text, encoding="utf-8")
        click.echo(f"Wrote {out} ({len(result.fixes)} fix(es))")
    else:
        click.echo(text)

    if any(issue.is_fatal for issue in result.issues):
        sys.exit(1)
