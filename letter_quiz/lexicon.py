"""Word list loading and random word selection."""

from __future__ import annotations

import random
from typing import Iterable, Iterator, Optional, Sequence, Tuple

from .puzzles import DISTRACTOR_COUNT, distractor_pool


class LexiconError(Exception):
    pass


class LoadError(LexiconError):
    """The word source could not be read."""


class EmptyLexiconError(LexiconError):
    """No words are available to draw from."""


class Lexicon:
    """Read-only list of candidate words."""

    def __init__(self, words: Iterable[str], *, rng: Optional[random.Random] = None) -> None:
        self._words: Tuple[str, ...] = tuple(words)
        self._rng = rng or random.Random()

    @classmethod
    def load(cls, path: str, *, rng: Optional[random.Random] = None) -> "Lexicon":
        """Load one word per line from ``path``.

        Trailing whitespace (including ``\\r``) is stripped and blank lines
        are skipped. Raises ``LoadError`` if the file cannot be read and
        ``EmptyLexiconError`` if it holds no words.
        """
        try:
            with open(path, "r", encoding="utf-8") as fh:
                raw = fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"Could not read word list {path}: {exc}") from exc
        words = [line.rstrip() for line in raw.splitlines()]
        words = [word for word in words if word]
        if not words:
            raise EmptyLexiconError(f"Word list {path} is empty.")
        return cls(words, rng=rng)

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[str]:
        return iter(self._words)

    @property
    def words(self) -> Sequence[str]:
        return self._words

    def random_word(self) -> str:
        if not self._words:
            raise EmptyLexiconError("Cannot pick a word from an empty lexicon.")
        return self._rng.choice(self._words)

    def playable_count(self, min_distractors: int = DISTRACTOR_COUNT) -> int:
        # Puzzles are built from the upper-cased word.
        return sum(
            1 for word in self._words
            if len(distractor_pool(word.upper())) >= min_distractors
        )


__all__ = ["Lexicon", "LexiconError", "LoadError", "EmptyLexiconError"]
