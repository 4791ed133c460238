"""Embed artifacts and the chunk plans produced for them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class EmbedKind(StrEnum):
    CSS = "css"
    JS = "js"
    HTML = "html"


def byte_size(content: str) -> int:
    return len(content.encode("utf-8"))


@dataclass(frozen=True)
class EmbedChunk:
    index: int
    content: str
    size: int
    kind: EmbedKind
    over_limit: bool = False


@dataclass
class ChunkPlan:
    """The result of splitting one embed artifact into pasteable parts."""

    kind: EmbedKind
    chunks: list[EmbedChunk] = field(default_factory=list)
    was_chunked: bool = False
    original_size: int = 0
    ceiling: int = 0
    instructions: list[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        return "".join(c.content for c in self.chunks)

    @property
    def largest(self) -> int:
        return max((c.size for c in self.chunks), default=0)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "was_chunked": self.was_chunked,
            "original_size": self.original_size,
            "ceiling": self.ceiling,
            "chunks": [
                {"index": c.index, "size": c.size, "over_limit": c.over_limit}
                for c in self.chunks
            ],
            "instructions": list(self.instructions),
        }
