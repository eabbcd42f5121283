"""Common types used across the codebase."""

from typing import NewType, Protocol

# NewType for git identifiers
CommitHash = NewType('CommitHash', str)

class ConfirmCallback(Protocol):
    """Synchronous yes/no question, e.g. a terminal prompt or a fixed answer."""
    def __call__(self, question: str) -> bool:
        ...

class GitInterface(Protocol):
    """Protocol for what the repository gateway expects from a git runner."""
    def run(self, *args: str) -> str:
        """Run git with the given arguments, raising on failure."""
        ...


def always(answer: bool) -> ConfirmCallback:
    """Confirm callback that answers every question with ``answer``."""
    def confirm(question: str) -> bool:
        return answer
    return confirm
