"""CLI command: flowbridge route -- show where each CSS rule would go."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from flowbridge.errors import ParseError
from flowbridge.routing import route as run_route
from flowbridge.stylesheet import parse_stylesheet


@click.command()
@click.argument("cssfile", type=click.Path(exists=True))
@click.option("--show-embed", is_flag=True, help="Print the generated CSS embed.")
def route(cssfile: str, show_embed: bool) -> None:
    """Route every rule of CSSFILE to native styles or the CSS embed."""
    try:
        stylesheet = parse_stylesheet(Path(cssfile).read_text(encoding="utf-8"))
    except ParseError as exc:
        click.echo(f"Parse error: {exc}", err=True)
        sys.exit(1)

    result = run_route(stylesheet)
    for decision in result.decisions:
        parts = [f"  {decision.destination.value:<6} {decision.selector}"]
        if decision.media:
            parts.append(f"@media {decision.media}")
        if decision.breakpoint:
            parts.append(f"-> {decision.breakpoint.key}")
        if decision.reasons:
            parts.append(f"({', '.join(decision.reasons)})")
        click.echo("  ".join(parts))

    stats = result.stats
    click.echo()
    click.echo(
        f"Summary: {stats.native} native, {stats.embed} embed, {stats.split} split, "
        f"{stats.nonstandard_media} non-standard media block(s)"
    )
    if show_embed and result.embed_css:
        click.echo()
        click.echo(result.embed_css)
