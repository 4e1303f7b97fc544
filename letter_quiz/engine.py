from __future__ import annotations

from typing import Callable, Dict, List, Optional

from . import __version__
from .lexicon import EmptyLexiconError, Lexicon
from .puzzles import Puzzle, PuzzleError, PuzzleGenerator
from .replies import MARKDOWN, PendingReply, escape_markdown
from .sessions import SessionStore


ANSWER_COMMANDS: Dict[str, int] = {
    "/A": 0,
    "/B": 1,
    "/C": 2,
    "/D": 3,
    "/E": 4,
}
NONE_OF_THE_ABOVE = "/E"
NONE_OF_THE_ABOVE_LABEL = "None of the above"

ANSWER_MENU: List[List[str]] = [
    ["/next"],
    ["/stats", "/help"],
]

STANDARD_MENU: List[List[str]] = [
    ["/next"],
    ["/stats", "/reset_stats"],
    ["/help", "/version"],
]

HELP_LINES = [
    "This bot understands the following commands:",
    "- /new, /next: ask for the next word",
    "- /stats: show your statistics",
    "- /reset_stats: reset your statistics",
    "- /help: show this help text",
    "- /version: show version information",
    "",
    "Each question shows the letters of a word in random order.",
    "Pick the letter the word starts with (/A to /D), or /E if none fits.",
]

NO_QUESTION_TEXT = "There is no open question. Send /new to get one."
GENERIC_ERROR_TEXT = "Something went wrong while preparing your question. Please try again with /new."


def _format_lines(lines: List[str]) -> str:
    return "\n".join([line.rstrip() for line in lines if line is not None])


def _menu(rows: List[List[str]]) -> List[List[str]]:
    return [list(row) for row in rows]


def question_menu(puzzle: Puzzle) -> List[List[str]]:
    commands = [cmd for cmd, idx in ANSWER_COMMANDS.items() if idx < len(puzzle.options)]
    rows = [[f"{cmd} {letter}"] for cmd, letter in zip(commands, puzzle.options)]
    rows.append([f"{NONE_OF_THE_ABOVE} {NONE_OF_THE_ABOVE_LABEL}"])
    return rows


class ConversationEngine:
    """Turns one inbound text into one reply, per user."""

    def __init__(
        self,
        *,
        lexicon: Lexicon,
        generator: PuzzleGenerator,
        store: SessionStore,
        clean_log: Optional[Callable[..., None]] = None,
    ) -> None:
        self.lexicon = lexicon
        self.generator = generator
        self.store = store
        self.clean_log = clean_log or (lambda *args, **kwargs: None)

    # ------------------------
    # Public dispatcher
    # ------------------------
    def handle_message(self, user_id: str, text: str) -> PendingReply:
        text = text or ""
        parts = text.split(None, 1)
        cmd = parts[0] if parts else ""
        return self.handle_command(cmd, user_id, text)

    def handle_command(self, cmd: str, user_id: str, text: str) -> PendingReply:
        user_id = str(user_id)
        if cmd in {"/new", "/next"}:
            return self._handle_new(user_id)
        if cmd in ANSWER_COMMANDS:
            return self._handle_answer(user_id, ANSWER_COMMANDS[cmd])
        if cmd == "/stats":
            return self._handle_stats(user_id)
        if cmd == "/reset_stats":
            return self._handle_reset_stats(user_id)
        if cmd == "/help":
            return PendingReply(_format_lines(HELP_LINES), "help", keyboard=_menu(STANDARD_MENU))
        if cmd == "/version":
            return PendingReply(f"letter-quiz {__version__}", "version", keyboard=_menu(STANDARD_MENU))
        return PendingReply(f"Unknown command: {text}", "unknown", keyboard=_menu(ANSWER_MENU))

    # ------------------------
    # Questions
    # ------------------------
    def _handle_new(self, user_id: str) -> PendingReply:
        try:
            word = self.lexicon.random_word().upper()
            puzzle = self.generator.generate(word)
        except (PuzzleError, EmptyLexiconError) as exc:
            self.clean_log(f"Could not build a question for {user_id}: {exc}", "⚠️")
            return PendingReply(GENERIC_ERROR_TEXT, "error", keyboard=_menu(ANSWER_MENU))

        # Replaces any question the user left unanswered.
        self.store.set_open_puzzle(user_id, puzzle)
        lines = [
            f"*{escape_markdown(' '.join(puzzle.scrambled))}*",
            "Which letter does this word start with?",
        ]
        return PendingReply(
            _format_lines(lines),
            "question",
            parse_mode=MARKDOWN,
            keyboard=question_menu(puzzle),
        )

    def _handle_answer(self, user_id: str, option: int) -> PendingReply:
        with self.store.locked():
            puzzle = self.store.open_puzzle(user_id)
            if puzzle is None:
                return PendingReply(NO_QUESTION_TEXT, "no question", keyboard=_menu(ANSWER_MENU))
            # "None of the above" never matches; the first letter is always offered.
            correct = option == puzzle.correct_index
            self.store.record_answer(user_id, correct)
            self.store.clear_open_puzzle(user_id)

        headline = "✅ *Correct!*" if correct else "❌ *Wrong!*"
        lines = [headline, f"The word was: {escape_markdown(puzzle.answer_word)}"]
        return PendingReply(
            _format_lines(lines),
            "answer",
            parse_mode=MARKDOWN,
            keyboard=_menu(ANSWER_MENU),
        )

    # ------------------------
    # Statistics
    # ------------------------
    def _handle_stats(self, user_id: str) -> PendingReply:
        stats = self.store.stats(user_id)
        return PendingReply(_format_lines(stats.lines()), "stats", keyboard=_menu(STANDARD_MENU))

    def _handle_reset_stats(self, user_id: str) -> PendingReply:
        self.store.reset_score(user_id)
        return PendingReply("Your statistics have been reset.", "reset stats", keyboard=_menu(STANDARD_MENU))


__all__ = [
    "ConversationEngine",
    "ANSWER_COMMANDS",
    "ANSWER_MENU",
    "STANDARD_MENU",
    "NO_QUESTION_TEXT",
    "GENERIC_ERROR_TEXT",
    "question_menu",
]
