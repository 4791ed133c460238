"""Design-token manifests used to resolve ``var()`` references."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from flowbridge.errors import ConfigError

__all__ = ["TokenVariable", "TokenManifest", "parse_token_manifest", "load_token_manifest"]

TOKEN_TYPES = frozenset({"color", "fontFamily", "spacing"})


@dataclass(frozen=True)
class TokenVariable:
    css_var: str
    value: str
    path: str = ""
    type: str = ""


@dataclass
class TokenManifest:
    name: str = ""
    variables: list[TokenVariable] = field(default_factory=list)

    def as_variables(self) -> dict[str, str]:
        """Map custom-property names to values, first definition winning."""
        result: dict[str, str] = {}
        for var in self.variables:
            result.setdefault(var.css_var, var.value)
        return result


def _variable_from_entry(entry: dict) -> TokenVariable:
    css_var = entry.get("cssVar")
    if not isinstance(css_var, str) or not css_var.startswith("--"):
        raise ConfigError(f"Token entry has no valid cssVar: {entry!r}")
    value = entry.get("value")
    if value is None and isinstance(entry.get("values"), dict):
        # Themed tokens: the light mode is the default rendering.
        value = entry["values"].get("light")
    if not isinstance(value, str):
        raise ConfigError(f"Token {css_var} has no string value")
    token_type = entry.get("type", "")
    if token_type and token_type not in TOKEN_TYPES:
        raise ConfigError(f"Token {css_var} has unknown type {token_type!r}")
    return TokenVariable(css_var=css_var, value=value, path=entry.get("path", ""), type=token_type)


def parse_token_manifest(data: dict) -> TokenManifest:
    """Build a manifest from decoded JSON.

    Accepts either ``{"variables": [{"cssVar", "value", ...}]}`` or a flat
    ``{"--name": "value"}`` mapping.
    """
    if not isinstance(data, dict):
        raise ConfigError("Token manifest must be a JSON object")
    if "variables" in data:
        entries = data["variables"]
        if not isinstance(entries, list):
            raise ConfigError("Token manifest 'variables' must be a list")
        return TokenManifest(
            name=str(data.get("name", "")),
            variables=[_variable_from_entry(e) for e in entries],
        )
    variables = []
    for key, value in data.items():
        if not key.startswith("--") or not isinstance(value, str):
            raise ConfigError(f"Invalid flat token entry {key!r}")
        variables.append(TokenVariable(css_var=key, value=value))
    return TokenManifest(variables=variables)


def load_token_manifest(path: str | Path) -> TokenManifest:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read token manifest {path}: {exc}") from exc
    return parse_token_manifest(data)
