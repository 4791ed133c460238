"""CLI command: flowbridge chunk -- split an embed file into pasteable parts."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from flowbridge.chunker import DEFAULT_CEILING, chunk_embed
from flowbridge.cli.convert import write_chunks
from flowbridge.model.embed import EmbedKind


@click.command()
@click.argument("file", type=click.Path(exists=True))
@click.option(
    "--kind",
    type=click.Choice([k.value for k in EmbedKind]),
    default=None,
    help="Content kind; guessed from the file extension when omitted.",
)
@click.option("--ceiling", type=int, default=DEFAULT_CEILING, show_default=True, help="Bytes per chunk.")
@click.option("--out-dir", type=click.Path(), help="Write each chunk to this directory.")
def chunk(file: str, kind: str | None, ceiling: int, out_dir: str | None) -> None:
    """Split FILE into chunks of at most --ceiling bytes.

    Exits with code 1 if a single rule, statement or element is larger
    than the ceiling on its own.
    """
    path = Path(file)
    if kind is None:
        kind = path.suffix.lstrip(".").lower()
        if kind not in {k.value for k in EmbedKind}:
            click.echo(f"Cannot guess the kind of {path.name}; pass --kind", err=True)
            sys.exit(1)

    plan = chunk_embed(path.read_text(encoding="utf-8"), kind, ceiling)
    if not plan.was_chunked:
        click.echo(f"OK: {path.name} fits in one chunk ({plan.original_size} bytes)")
    for line in plan.instructions:
        click.echo(line)
    if out_dir:
        for written in write_chunks({plan.kind.value: plan}, Path(out_dir)):
            click.echo(f"wrote {written}")

    if any(c.over_limit for c in plan.chunks):
        sys.exit(1)
