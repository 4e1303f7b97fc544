"""In-memory per-user quiz state."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .puzzles import Puzzle


@dataclass
class Score:
    correct: int = 0
    total: int = 0

    def add_correct(self) -> None:
        self.correct += 1
        self.total += 1

    def add_wrong(self) -> None:
        self.total += 1

    def reset(self) -> None:
        self.correct = 0
        self.total = 0


@dataclass(frozen=True)
class ScoreStats:
    correct: int
    total: int
    percentage: float

    def lines(self) -> List[str]:
        return [
            f"Correct answers: {self.correct}",
            f"Total answers: {self.total}",
            f"Percentage: {self.percentage:.2f}%",
        ]


@dataclass
class Session:
    user_id: str
    open_puzzle: Optional[Puzzle] = None
    score: Score = field(default_factory=Score)


class SessionStore:
    """Owns every user's session behind a single re-entrant lock.

    Each public method takes the lock on its own. Callers that need to
    read and update a session as one step wrap the calls in ``locked()``.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @contextmanager
    def locked(self) -> Iterator["SessionStore"]:
        with self._lock:
            yield self

    def get_or_create(self, user_id: str) -> Session:
        key = str(user_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = Session(user_id=key)
                self._sessions[key] = session
            return session

    def open_puzzle(self, user_id: str) -> Optional[Puzzle]:
        with self._lock:
            return self.get_or_create(user_id).open_puzzle

    def set_open_puzzle(self, user_id: str, puzzle: Puzzle) -> None:
        with self._lock:
            self.get_or_create(user_id).open_puzzle = puzzle

    def clear_open_puzzle(self, user_id: str) -> None:
        with self._lock:
            self.get_or_create(user_id).open_puzzle = None

    def record_answer(self, user_id: str, correct: bool) -> None:
        with self._lock:
            score = self.get_or_create(user_id).score
            if correct:
                score.add_correct()
            else:
                score.add_wrong()

    def reset_score(self, user_id: str) -> None:
        with self._lock:
            self.get_or_create(user_id).score.reset()

    def stats(self, user_id: str) -> ScoreStats:
        with self._lock:
            score = self.get_or_create(user_id).score
            correct, total = score.correct, score.total
        if total == 0:
            percentage = 100.0
        else:
            percentage = round(correct / total * 100, 2)
        return ScoreStats(correct=correct, total=total, percentage=percentage)


__all__ = ["Score", "ScoreStats", "Session", "SessionStore"]
