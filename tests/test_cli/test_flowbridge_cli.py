"""Tests for the flowbridge command line."""

import json
from pathlib import Path

from click.testing import CliRunner

from flowbridge import __version__
from flowbridge.builder import DOCUMENT_TYPE
from flowbridge.cli.main import cli
from flowbridge.gate import GateInput, SafetyGate


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def _document(tmp_path: Path) -> tuple[Path, dict]:
    gate = SafetyGate(seed=2)
    document = gate.run(GateInput(markup='<div class="hero">Hi</div>', css=".hero { color: red; }")).document
    return _write(tmp_path, "doc.json", json.dumps(document)), document


class TestVersion:
    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------


class TestConvert:
    def test_writes_document_and_report(self, tmp_path: Path) -> None:
        markup = _write(tmp_path, "page.html", '<div class="hero"><p>Hi</p></div>')
        css = _write(tmp_path, "style.css", ".hero { color: red; }")
        out, report = tmp_path / "doc.json", tmp_path / "report.json"
        result = CliRunner().invoke(cli, [
            "convert", str(markup), "--css", str(css),
            "--out", str(out), "--report", str(report), "--seed", "3",
        ])
        assert result.exit_code == 0
        assert json.loads(out.read_text())["type"] == DOCUMENT_TYPE
        assert json.loads(report.read_text())["verdict"] == "pass"
        assert "PASS: 0 fatal, 0 error(s), 0 warning(s), 0 fix(es) applied" in result.output

    def test_seed_makes_output_reproducible(self, tmp_path: Path) -> None:
        markup = _write(tmp_path, "page.html", "<div><p>Hi</p></div>")
        runner = CliRunner()
        for name in ("a.json", "b.json"):
            runner.invoke(cli, ["convert", str(markup), "--out", str(tmp_path / name), "--seed", "9"])
        assert (tmp_path / "a.json").read_text() == (tmp_path / "b.json").read_text()

    def test_stdout_holds_only_the_document(self, tmp_path: Path) -> None:
        markup = _write(tmp_path, "page.html", '<div class="w-button">Go</div>')
        css = _write(tmp_path, "style.css", ".w-button { color: red; }")
        result = CliRunner().invoke(cli, ["convert", str(markup), "--css", str(css), "--seed", "3"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["type"] == DOCUMENT_TYPE
        assert "fixed: Renamed reserved class 'w-button' to 'custom-button'" in result.stderr
        assert "WARN" in result.stderr

    def test_blocked_exits_nonzero(self, tmp_path: Path) -> None:
        markup = _write(tmp_path, "page.html", "<div>x</div>")
        css = _write(tmp_path, "bad.css", '.a { content: "oops; }')
        out = tmp_path / "doc.json"
        result = CliRunner().invoke(cli, ["convert", str(markup), "--css", str(css), "--out", str(out)])
        assert result.exit_code == 1
        assert "PARSE_ERROR" in result.output
        assert "BLOCK" in result.output
        assert not out.exists()

    def test_embed_chunks_written(self, tmp_path: Path) -> None:
        markup = _write(tmp_path, "page.html", '<div id="main">x</div>')
        css = _write(tmp_path, "style.css", "#main { top: 0; }")
        embed_dir = tmp_path / "embeds"
        result = CliRunner().invoke(cli, [
            "convert", str(markup), "--css", str(css),
            "--out", str(tmp_path / "doc.json"), "--embed-dir", str(embed_dir),
        ])
        assert result.exit_code == 0
        assert (embed_dir / "css-1.css").read_text() == "#main {\n  top: 0;\n}\n"

    def test_config_error(self, tmp_path: Path) -> None:
        markup = _write(tmp_path, "page.html", "<div>x</div>")
        config = _write(tmp_path, "config.json", '{"bogus": 1}')
        result = CliRunner().invoke(cli, ["convert", str(markup), "--config", str(config)])
        assert result.exit_code == 1
        assert "Config error" in result.output

    def test_tokens_manifest(self, tmp_path: Path) -> None:
        markup = _write(tmp_path, "page.html", '<div class="a">x</div>')
        css = _write(tmp_path, "style.css", ".a { color: var(--brand); }")
        tokens = _write(tmp_path, "tokens.json", '{"--brand": "#abcdef"}')
        out = tmp_path / "doc.json"
        result = CliRunner().invoke(cli, [
            "convert", str(markup), "--css", str(css), "--tokens", str(tokens), "--out", str(out),
        ])
        assert result.exit_code == 0
        styles = json.loads(out.read_text())["payload"]["styles"]
        assert styles[0]["styleLess"] == "color: #abcdef;"


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


class TestValidate:
    def test_valid_document(self, tmp_path: Path) -> None:
        path, _ = _document(tmp_path)
        result = CliRunner().invoke(cli, ["validate", str(path)])
        assert result.exit_code == 0
        assert "OK: doc.json is valid (0 issues)" in result.output

    def test_fatal_document(self, tmp_path: Path) -> None:
        _, document = _document(tmp_path)
        root = document["payload"]["nodes"][0]
        root["children"].append(root["_id"])
        path = _write(tmp_path, "cyclic.json", json.dumps(document))
        result = CliRunner().invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "CIRCULAR_REFERENCE" in result.output
        assert "Summary: 1 fatal" in result.output

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "bad.json", "{not json")
        result = CliRunner().invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Parse error" in result.output

    def test_missing_file(self) -> None:
        result = CliRunner().invoke(cli, ["validate", "/nonexistent/doc.json"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# sanitize
# ---------------------------------------------------------------------------


class TestSanitize:
    def test_repairs_to_out_file(self, tmp_path: Path) -> None:
        _, document = _document(tmp_path)
        document["payload"]["nodes"][0]["children"].append("ghost")
        path = _write(tmp_path, "broken.json", json.dumps(document))
        out = tmp_path / "fixed.json"
        result = CliRunner().invoke(cli, ["sanitize", str(path), "--out", str(out)])
        assert result.exit_code == 0
        assert "fixed: Removed 1 dangling child reference(s)" in result.output
        assert f"Wrote {out} (1 fix(es))" in result.output
        repaired = json.loads(out.read_text())
        assert "ghost" not in repaired["payload"]["nodes"][0]["children"]


# ---------------------------------------------------------------------------
# route
# ---------------------------------------------------------------------------


class TestRoute:
    def test_prints_decisions_and_summary(self, tmp_path: Path) -> None:
        css = _write(tmp_path, "style.css", ".a { color: red; } #b { top: 0; }")
        result = CliRunner().invoke(cli, ["route", str(css), "--show-embed"])
        assert result.exit_code == 0
        assert "native .a" in result.output
        assert "embed  #b" in result.output
        assert "(id-selector)" in result.output
        assert "Summary: 1 native, 1 embed, 0 split, 0 non-standard media block(s)" in result.output
        assert "#b {\n  top: 0;\n}" in result.output

    def test_media_decision(self, tmp_path: Path) -> None:
        css = _write(tmp_path, "style.css", "@media (max-width: 767px) { .a { top: 0; } }")
        result = CliRunner().invoke(cli, ["route", str(css)])
        assert "@media (max-width: 767px)" in result.output
        assert "-> small" in result.output


# ---------------------------------------------------------------------------
# chunk
# ---------------------------------------------------------------------------


class TestChunk:
    def test_small_file_fits(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "embed.css", ".a{top:0}")
        result = CliRunner().invoke(cli, ["chunk", str(path)])
        assert result.exit_code == 0
        assert "OK: embed.css fits in one chunk (9 bytes)" in result.output

    def test_split_and_written(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "embed.css", ".a{color:red} .b{color:blue}")
        out_dir = tmp_path / "parts"
        result = CliRunner().invoke(cli, ["chunk", str(path), "--ceiling", "20", "--out-dir", str(out_dir)])
        assert result.exit_code == 0
        assert "CSS embed split into 2 parts (28 bytes total)" in result.output
        assert (out_dir / "css-1.css").read_text() + (out_dir / "css-2.css").read_text() == (
            ".a{color:red} .b{color:blue}"
        )

    def test_over_limit_unit_fails(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "embed.css", ".a{color:red} .b{color:blue}")
        result = CliRunner().invoke(cli, ["chunk", str(path), "--ceiling", "10"])
        assert result.exit_code == 1
        assert "(over limit)" in result.output

    def test_unknown_extension_needs_kind(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "embed.txt", "var a = 1;")
        result = CliRunner().invoke(cli, ["chunk", str(path)])
        assert result.exit_code == 1
        assert "pass --kind" in result.output
        ok = CliRunner().invoke(cli, ["chunk", str(path), "--kind", "js"])
        assert ok.exit_code == 0
