"""Pretty formatting utilities for CLI output."""

import shutil
import sys
from typing import IO, Optional

OK = "✅"
WARN = "⚠️ "
RULE = "-" * 40

def get_term_width() -> int:
    """Get terminal width, default to 80 if can't detect."""
    try:
        return shutil.get_terminal_size().columns
    except Exception:
        return 80


def header(text: str, use_emoji: bool = True) -> str:
    """Create a boxed header with optional emoji."""
    emoji = "🌿 " if use_emoji else ""
    width = max(min(get_term_width(), 100), len(text) + len(emoji) + 4)

    h_line = "─" * (width - 2)
    v_line = "│"
    result = [
        f"┌{h_line}┐",
        f"{v_line} {emoji}{text}{' ' * (width - len(text) - len(emoji) - 3)}{v_line}",
        f"└{h_line}┘"
    ]
    return "\n".join(result)


def marker(ok: bool, text: str) -> str:
    """Per-item success/failure line."""
    return f"{OK if ok else WARN} {text}"


def print_header(text: str, use_emoji: bool = True, file: Optional[IO[str]] = None) -> None:
    """Print a header to file (default stdout)."""
    if file is None:
        file = sys.stdout
    print(header(text, use_emoji), file=file)


def print_rule(file: Optional[IO[str]] = None) -> None:
    """Print a section separator."""
    print(RULE, file=file if file is not None else sys.stdout)
