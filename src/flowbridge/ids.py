"""Per-run identifier generation."""

from __future__ import annotations

import random
import uuid


class IdGenerator:
    """Produces UUID v4 strings for nodes and styles.

    One generator is created per conversion run and threaded through the
    builder and the repair pass, so concurrent runs never share state.
    Passing a seeded :class:`random.Random` makes the output reproducible.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng
        self.issued = 0

    def next_id(self) -> str:
        self.issued += 1
        if self._rng is None:
            return str(uuid.uuid4())
        return str(uuid.UUID(int=self._rng.getrandbits(128), version=4))

    @classmethod
    def seeded(cls, seed: int) -> IdGenerator:
        return cls(random.Random(seed))
