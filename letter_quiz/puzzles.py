"""Scrambled-word puzzles with first-letter multiple choice."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

OPTION_COUNT = 4
DISTRACTOR_COUNT = OPTION_COUNT - 1


class PuzzleError(Exception):
    pass


class InsufficientDistractorsError(PuzzleError):
    def __init__(self, word: str, available: int) -> None:
        super().__init__(
            f"Word {word!r} has {available} usable distractor letters, "
            f"{DISTRACTOR_COUNT} are needed."
        )
        self.word = word
        self.available = available


@dataclass(frozen=True)
class Puzzle:
    scrambled: Tuple[str, ...]
    options: Tuple[str, ...]
    correct_index: int
    answer_word: str

    @property
    def correct_letter(self) -> str:
        return self.options[self.correct_index]


def distractor_pool(word: str) -> List[str]:
    """Distinct letters of ``word`` after the first, excluding the first letter."""
    if not word:
        return []
    first = word[0]
    pool: List[str] = []
    for ch in word[1:]:
        if ch != first and ch not in pool:
            pool.append(ch)
    return pool


class PuzzleGenerator:
    def __init__(self, *, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def can_build(self, word: str) -> bool:
        return len(distractor_pool(word)) >= DISTRACTOR_COUNT

    def scramble(self, word: str) -> Tuple[str, ...]:
        letters = list(word)
        self._rng.shuffle(letters)
        return tuple(letters)

    def build_options(self, word: str) -> Tuple[Tuple[str, ...], int]:
        pool = distractor_pool(word)
        if len(pool) < DISTRACTOR_COUNT:
            raise InsufficientDistractorsError(word, len(pool))
        first = word[0]
        options = self._rng.sample(pool, DISTRACTOR_COUNT)
        options.append(first)
        self._rng.shuffle(options)
        return tuple(options), options.index(first)

    def generate(self, word: str) -> Puzzle:
        options, correct_index = self.build_options(word)
        return Puzzle(
            scrambled=self.scramble(word),
            options=options,
            correct_index=correct_index,
            answer_word=word,
        )


__all__ = [
    "Puzzle",
    "PuzzleGenerator",
    "PuzzleError",
    "InsufficientDistractorsError",
    "distractor_pool",
    "DISTRACTOR_COUNT",
    "OPTION_COUNT",
]
