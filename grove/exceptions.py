"""Exceptions raised by grove."""

from typing import Optional


class GroveError(Exception):
    """Base exception for all grove errors."""
    pass


class NotARepositoryError(GroveError):
    """Raised when an operation runs outside a git repository."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"not a git repository: {path}")


class OperationFailedError(GroveError):
    """Raised when a git operation exits with a non-zero status."""

    def __init__(self, kind: str, target: Optional[str] = None, reason: Optional[str] = None):
        self.kind = kind
        self.target = target
        self.reason = reason

        error_msg = f"git worktree {kind} failed"
        if target:
            error_msg += f" for '{target}'"
        if reason:
            error_msg += f": {reason}"

        super().__init__(error_msg)


class PruneFailedError(GroveError):
    """Raised when pruning stale worktrees fails."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class TerminalError(GroveError):
    """Raised when a terminal cannot be opened for a worktree."""
    pass


class ConfigError(GroveError):
    """Raised for unreadable or malformed configuration files."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")
