from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from tests.utils import BRANCHES, LIST, STATUS, FakeGit, list_output, make_worktree


@dataclass
class FakeRepo:
    root: Path
    feature: Path
    hotfix: Path

    def list_lines(self) -> list[str]:
        return [
            f"{self.root}  abc1234 [main]",
            f"{self.feature}  def5678 [feature]",
            f"{self.hotfix}  0123abc (detached HEAD)",
        ]


@pytest.fixture
def fake_repo(tmp_path: Path) -> FakeRepo:
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    worktrees = tmp_path / "worktrees"
    return FakeRepo(
        root=root,
        feature=make_worktree(worktrees, "feature"),
        hotfix=make_worktree(worktrees, "hotfix"),
    )


@pytest.fixture
def fake_git(fake_repo: FakeRepo) -> FakeGit:
    fake = FakeGit()
    fake.set(LIST, list_output(*fake_repo.list_lines()))
    fake.set(BRANCHES, "main\nfeature\nexperiment\n")
    fake.set(STATUS, " M src/app.py\n?? notes.txt\n", cwd=str(fake_repo.feature))
    return fake
