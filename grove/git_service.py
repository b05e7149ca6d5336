import os
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .exceptions import NotARepositoryError, OperationFailedError, PruneFailedError
from .logging_config import get_logger
from .models import StatusSummary, WorktreeRecord
from .parsers import parse_branch_list, parse_status, parse_worktree_list

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    output: str
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class AddWorktreeOptions:
    path: str
    branch: str = ""
    create_branch: bool = True
    base_branch: Optional[str] = None


RunnerFn = Callable[..., CommandResult]


def run_process(args: Sequence[str], *, cwd: Optional[str] = None) -> CommandResult:
    """Run a command to completion, keeping stdout and stderr apart."""
    proc = subprocess.run(
        list(args),
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
    )
    return CommandResult(
        proc.returncode,
        proc.stdout.decode(errors="replace"),
        proc.stderr.decode(errors="replace"),
    )


def find_repository_root(path: str) -> Optional[str]:
    """Walk up from ``path`` looking for a git repository marker."""
    current = os.path.abspath(os.path.expanduser(path))
    while True:
        if os.path.exists(os.path.join(current, ".git")):
            return current
        if _is_bare_repository(current):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def _is_bare_repository(path: str) -> bool:
    return (
        os.path.isfile(os.path.join(path, "HEAD"))
        and os.path.isdir(os.path.join(path, "objects"))
        and os.path.isdir(os.path.join(path, "refs"))
    )


class GitService:
    def __init__(
        self,
        repo_path: Optional[str] = None,
        runner: Optional[RunnerFn] = None,
        max_workers: int = 8,
    ) -> None:
        self.repo_path = os.path.abspath(os.path.expanduser(repo_path or os.getcwd()))
        self._runner = runner or run_process
        self._max_workers = max_workers

    def is_repository(self, path: Optional[str] = None) -> bool:
        return find_repository_root(path or self.repo_path) is not None

    def ensure_repository(self, path: Optional[str] = None) -> None:
        target = path or self.repo_path
        if not os.path.isdir(target) or not self.is_repository(target):
            raise NotARepositoryError(target)

    def run_git(
        self,
        args: list[str],
        cwd: Optional[str] = None,
        kind: str = "command",
        target: Optional[str] = None,
    ) -> CommandResult:
        cwd = cwd or self.repo_path
        self.ensure_repository(cwd)
        command = " ".join(args)
        logger.debug("running %s (cwd=%s)", command, cwd)
        try:
            result = self._runner(args, cwd=cwd)
        except OSError as exc:
            logger.warning("failed to run %s: %s", command, exc)
            raise OperationFailedError(kind, target, str(exc)) from exc
        if not result.ok:
            reason = (
                result.error.strip()
                or result.output.strip()
                or f"{command} exited with status {result.returncode}"
            )
            logger.warning("%s failed: %s", command, reason)
            raise OperationFailedError(kind, target, reason)
        return result

    def list_worktrees(self) -> list[WorktreeRecord]:
        result = self.run_git(["git", "worktree", "list"], kind="list", target=self.repo_path)
        return parse_worktree_list(result.output)

    def add_worktree(self, options: AddWorktreeOptions) -> None:
        args = ["git", "worktree", "add"]
        if options.create_branch:
            branch = options.branch or os.path.basename(options.path.rstrip("/"))
            args += ["-b", branch, options.path]
            if options.base_branch:
                args.append(options.base_branch)
        else:
            args += [options.path, options.branch]
        self.run_git(args, kind="add", target=options.path)

    def remove_worktree(self, path: str, force: bool = False) -> None:
        args = ["git", "worktree", "remove"]
        if force:
            args.append("--force")
        args.append(path)
        self.run_git(args, kind="remove", target=path)

    def prune_worktrees(self, dry_run: bool = False) -> str:
        args = ["git", "worktree", "prune"]
        if dry_run:
            args.append("--dry-run")
        try:
            result = self.run_git(args, kind="prune")
        except OperationFailedError as exc:
            raise PruneFailedError(exc.reason or str(exc)) from exc
        return result.output.strip()

    def worktree_status(self, path: str) -> StatusSummary:
        # Porcelain lines start with a space for unstaged-only changes; never strip.
        result = self.run_git(["git", "status", "--porcelain"], cwd=path, kind="status", target=path)
        return parse_status(result.output)

    def worktree_statuses(self, records: list[WorktreeRecord]) -> dict[str, Optional[StatusSummary]]:
        """Fetch status for every non-bare worktree, a bounded number at a time.

        A worktree whose status cannot be read maps to ``None``.
        """
        paths = [record.path for record in records if not record.is_bare]
        if not paths:
            return {}

        def status_or_none(path: str) -> Optional[StatusSummary]:
            try:
                return self.worktree_status(path)
            except (NotARepositoryError, OperationFailedError) as exc:
                logger.warning("status unavailable for %s: %s", path, exc)
                return None

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(paths))) as pool:
            return dict(zip(paths, pool.map(status_or_none, paths)))

    def list_branches(self) -> list[str]:
        result = self.run_git(
            ["git", "branch", "--format=%(refname:short)"], kind="branch", target=self.repo_path
        )
        return parse_branch_list(result.output)
