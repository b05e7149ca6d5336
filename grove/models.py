from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class StatusSummary:
    modified: int = 0
    staged: int = 0
    untracked: int = 0

    @property
    def total(self) -> int:
        return self.modified + self.staged + self.untracked

    @property
    def clean(self) -> bool:
        return self.total == 0


@dataclass(frozen=True)
class WorktreeRecord:
    path: str
    branch: str = ""
    commit_hash: str = ""
    is_bare: bool = False
    is_detached: bool = False
    status: Optional[StatusSummary] = None

    @property
    def name(self) -> str:
        return os.path.basename(self.path.rstrip("/\\")) or self.path


@dataclass(frozen=True)
class WorktreeDetail:
    record: WorktreeRecord


@dataclass(frozen=True)
class TextDetail:
    text: str = ""


Detail = Union[WorktreeDetail, TextDetail]


@dataclass(frozen=True)
class ViewItem:
    id: str
    title: str
    description: str = ""
    detail: Detail = TextDetail()

    @property
    def worktree(self) -> Optional[WorktreeRecord]:
        if isinstance(self.detail, WorktreeDetail):
            return self.detail.record
        return None


@dataclass(frozen=True)
class Action:
    id: str
    label: str
    description: str = ""


def describe_worktree(record: WorktreeRecord) -> str:
    if record.is_bare:
        return "Bare repository"
    if record.is_detached:
        return "Detached HEAD"
    return record.branch


def worktree_item(record: WorktreeRecord) -> ViewItem:
    return ViewItem(
        id=record.path,
        title=record.name,
        description=describe_worktree(record),
        detail=WorktreeDetail(record),
    )


def branch_item(branch: str) -> ViewItem:
    return ViewItem(
        id=branch,
        title=branch,
        description="Local branch",
        detail=TextDetail(f"Local branch {branch}"),
    )


WORKTREE_ACTIONS = (
    Action("open", "Open", "Open worktree in new terminal"),
    Action("cd", "Copy Path", "Show the cd command for this worktree"),
    Action("delete", "Delete", "Remove this worktree"),
)

BRANCH_ACTIONS = (
    Action("worktree", "New Worktree", "Check out this branch in a new worktree"),
)
