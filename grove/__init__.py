"""Interactive terminal front-end for git worktrees."""

__version__ = "0.3.0"
