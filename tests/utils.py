from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable

from grove.config import AppConfig
from grove.events import ClearFeedback, Key
from grove.git_service import CommandResult, GitService
from grove.session import Session

LIST = ["git", "worktree", "list"]
BRANCHES = ["git", "branch", "--format=%(refname:short)"]
STATUS = ["git", "status", "--porcelain"]
PRUNE = ["git", "worktree", "prune"]
PRUNE_DRY_RUN = ["git", "worktree", "prune", "--dry-run"]


class FakeGit:
    """Runner that records calls and answers with canned output."""

    def __init__(self) -> None:
        self._outputs: dict[tuple[tuple[str, ...], str | None], tuple[CommandResult, Callable[[], None] | None]] = {}
        self._errors: dict[tuple[str, ...], OSError] = {}
        self.calls: list[tuple[tuple[str, ...], str | None]] = []

    def set(
        self,
        args: list[str],
        output: str,
        cwd: str | None = None,
        returncode: int = 0,
        effect: Callable[[], None] | None = None,
        error: str = "",
    ) -> None:
        self._outputs[(tuple(args), cwd)] = (CommandResult(returncode, output, error), effect)

    def raise_on(self, args: list[str], exc: OSError) -> None:
        self._errors[tuple(args)] = exc

    def __call__(self, args: list[str], *, cwd: str | None = None) -> CommandResult:
        key = tuple(args)
        self.calls.append((key, cwd))
        if key in self._errors:
            raise self._errors[key]
        entry = self._outputs.get((key, cwd)) or self._outputs.get((key, None))
        if entry is None:
            return CommandResult(0, "")
        result, effect = entry
        if effect is not None:
            effect()
        return result

    def calls_for(self, *prefix: str) -> list[tuple[tuple[str, ...], str | None]]:
        return [call for call in self.calls if call[0][: len(prefix)] == prefix]


def make_git_service(fake: FakeGit, repo_path: Path | str) -> GitService:
    return GitService(str(repo_path), runner=fake)


def make_worktree(root: Path, name: str) -> Path:
    path = root / name
    path.mkdir(parents=True)
    (path / ".git").write_text(f"gitdir: {root}/.git/worktrees/{name}\n", encoding="utf-8")
    return path


def list_output(*lines: str) -> str:
    return "\n".join(lines) + "\n"


class RecordingScheduler:
    def __init__(self) -> None:
        self.scheduled: list[tuple[float, ClearFeedback]] = []

    def __call__(self, delay: float, event: ClearFeedback) -> None:
        self.scheduled.append((delay, event))


class FakeOpener:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.opened: list[str] = []

    def open_worktree(self, path: str):
        self.opened.append(path)
        if self.error is not None:
            raise self.error
        return self.result


def make_session(fake: FakeGit, repo_path: Path | str, config: AppConfig | None = None, **kwargs) -> Session:
    session = Session(make_git_service(fake, repo_path), config=config or AppConfig(), **kwargs)
    session.refresh()
    return session


def press(session: Session, *keys: str) -> None:
    for key in keys:
        session.dispatch(Key.parse(key))


def type_text(session: Session, text: str) -> None:
    for char in text:
        session.dispatch(Key.parse(char))


async def wait_for(
    predicate: Callable[[], bool], *, timeout: float = 1.0, interval: float = 0.01
) -> None:
    loop = asyncio.get_running_loop()
    start = loop.time()
    while True:
        if predicate():
            return
        if loop.time() - start > timeout:
            raise AssertionError("timed out waiting for condition")
        await asyncio.sleep(interval)
