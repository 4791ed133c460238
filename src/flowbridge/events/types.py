"""Events emitted while the safety gate processes one input."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GateStarted:
    markup_size: int
    css_size: int


@dataclass(frozen=True)
class GateStateEntered:
    state: str


@dataclass(frozen=True)
class IssuesFound:
    state: str
    fatal: int
    errors: int
    warnings: int


@dataclass(frozen=True)
class RepairPassCompleted:
    iteration: int
    fixes: tuple[str, ...]


@dataclass(frozen=True)
class EmbedChunked:
    kind: str
    chunks: int
    size: int


@dataclass(frozen=True)
class GateCompleted:
    verdict: str


@dataclass(frozen=True)
class GateFailed:
    error: str
