from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class MemWrite:
    addr: int
    data: int


@dataclass(frozen=True)
class WordMem:
    """Fixed-depth word memory addressed by a full-width index (no out-of-range addresses)."""

    width: int
    words: Tuple[int, ...]

    def __post_init__(self) -> None:
        depth = len(self.words)
        if depth == 0 or depth & (depth - 1):
            raise ValueError(f"memory depth must be a power of two, got {depth}")
        if self.width <= 0:
            raise ValueError("memory width must be positive")

    @classmethod
    def from_image(cls, image: Iterable[int], *, width: int, depth: int) -> "WordMem":
        words = [int(w) for w in image]
        if len(words) > depth:
            raise ValueError(f"image has {len(words)} words, memory holds {depth}")
        limit = (1 << width) - 1
        for i, w in enumerate(words):
            if w < 0 or w > limit:
                raise ValueError(f"word {i} = {w:#x} does not fit in {width} bits")
        words.extend([0] * (depth - len(words)))
        return cls(width=width, words=tuple(words))

    @property
    def depth(self) -> int:
        return len(self.words)

    def read(self, addr: int) -> int:
        return self.words[addr & (self.depth - 1)]

    def write(self, w: Optional[MemWrite]) -> "WordMem":
        if w is None:
            return self
        words = list(self.words)
        words[w.addr & (self.depth - 1)] = w.data & ((1 << self.width) - 1)
        return WordMem(width=self.width, words=tuple(words))
