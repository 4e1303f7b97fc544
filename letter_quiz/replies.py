from dataclasses import dataclass, field
from typing import List, Optional

MARKDOWN = "Markdown"


@dataclass
class PendingReply:
    text: str
    reason: str = "command"
    parse_mode: Optional[str] = None
    keyboard: List[List[str]] = field(default_factory=list)


_MARKDOWN_SPECIALS = ("\\", "_", "*", "`", "[")


def escape_markdown(text: str) -> str:
    """Backslash-escape characters that legacy Telegram Markdown treats as markup."""
    for ch in _MARKDOWN_SPECIALS:
        text = text.replace(ch, "\\" + ch)
    return text
