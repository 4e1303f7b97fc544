"""Scrambled-word first-letter quiz for chat transports."""

__version__ = "0.1.0"

from .engine import ConversationEngine
from .lexicon import EmptyLexiconError, Lexicon, LexiconError, LoadError
from .puzzles import InsufficientDistractorsError, Puzzle, PuzzleError, PuzzleGenerator
from .replies import PendingReply
from .sessions import ScoreStats, Session, SessionStore

__all__ = [
    "ConversationEngine",
    "Lexicon",
    "LexiconError",
    "LoadError",
    "EmptyLexiconError",
    "Puzzle",
    "PuzzleGenerator",
    "PuzzleError",
    "InsufficientDistractorsError",
    "PendingReply",
    "Session",
    "SessionStore",
    "ScoreStats",
]
