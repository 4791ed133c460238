"""CLI command: flowbridge convert -- markup and CSS to an XscpData document."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from flowbridge.config import BridgeConfig, load_config
from flowbridge.errors import ConfigError
from flowbridge.gate import GateInput, SafetyGate
from flowbridge.stylesheet import load_token_manifest

_EXTENSIONS = {"css": "css", "js": "js", "html": "html"}


def _read(path: str | None) -> str:
    return Path(path).read_text(encoding="utf-8") if path else ""


def write_chunks(chunks: dict, embed_dir: Path) -> list[Path]:
    """Write one file per chunk, named ``<kind>-<n>.<ext>``."""
    embed_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for kind, plan in chunks.items():
        for chunk in plan.chunks:
            path = embed_dir / f"{kind}-{chunk.index + 1}.{_EXTENSIONS.get(kind, 'txt')}"
            path.write_text(chunk.content, encoding="utf-8")
            written.append(path)
    return written


@click.command()
@click.argument("markup", type=click.Path(exists=True))
@click.option("--css", "css_file", type=click.Path(exists=True), help="Stylesheet to convert.")
@click.option("--js", "js_file", type=click.Path(exists=True), help="Script for the JS embed.")
@click.option("--tokens", "tokens_file", type=click.Path(exists=True), help="Design-token manifest (JSON).")
@click.option("--config", "config_file", type=click.Path(exists=True), help="JSON config overrides.")
@click.option("--out", type=click.Path(), help="Where to write the XscpData document.")
@click.option("--report", "report_file", type=click.Path(), help="Where to write the safety report.")
@click.option("--embed-dir", type=click.Path(), help="Directory for embed chunk files.")
@click.option("--seed", type=int, default=None, help="Seed ids for reproducible output.")
def convert(
    markup: str,
    css_file: str | None,
    js_file: str | None,
    tokens_file: str | None,
    config_file: str | None,
    out: str | None,
    report_file: str | None,
    embed_dir: str | None,
    seed: int | None,
) -> None:
    """Convert MARKUP (and its CSS) into a checked XscpData document.

    Prints the applied fixes and remaining issues, then the verdict. Without
    --out the document is written to stdout and these lines go to stderr.
    Exits with code 1 when the verdict is block.
    """
    try:
        config = load_config(config_file) if config_file else BridgeConfig()
        tokens = load_token_manifest(tokens_file).as_variables() if tokens_file else None
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)

    gate_input = GateInput(
        markup=_read(markup), css=_read(css_file), js=_read(js_file), tokens=tokens,
    )
    stderr = out is None
    result = SafetyGate(config, seed=seed).run(gate_input)
    report = result.report

    for fix in report.applied_fixes:
        click.echo(f"fixed: {fix}", err=stderr)
    for issue in [*report.fatal_issues, *report.errors, *report.warnings]:
        click.echo(str(issue), err=stderr)

    if report_file:
        Path(report_file).write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
    if result.document is not None:
        text = json.dumps(result.document, indent=2, ensure_ascii=False)
        if out:
            Path(out).write_text(text, encoding="utf-8")
        else:
            click.echo(text)
    if embed_dir and not result.blocked:
        for path in write_chunks(result.chunks, Path(embed_dir)):
            click.echo(f"wrote {path}", err=stderr)
    for plan in result.chunks.values():
        for line in plan.instructions:
            click.echo(line, err=stderr)

    click.echo(err=stderr)
    click.echo(report.summary(), err=stderr)
    if result.blocked:
        sys.exit(1)
