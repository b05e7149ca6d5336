"""Parsers for the text output of ``git worktree list`` and ``git status``.

Both parsers are total: lines they do not recognise are skipped, never
reported as errors.
"""
from __future__ import annotations

from typing import Optional

from .models import StatusSummary, WorktreeRecord

BARE_SUFFIX = "(bare)"
DETACHED_SUFFIX = "(detached HEAD)"


def split_path_hash(text: str) -> tuple[str, str]:
    """Split ``<path>  <hash>`` on the last run of two or more spaces.

    Paths may contain single spaces; git pads the path column so that the
    hash is always separated by a wider gap. Without such a gap the whole
    string is the path and the hash is empty.
    """
    text = text.strip()
    last_gap = -1
    for i in range(len(text) - 1):
        if text[i] == " " and text[i + 1] == " ":
            last_gap = i
    if last_gap == -1:
        return text, ""
    return text[:last_gap].strip(), text[last_gap:].strip()


def parse_worktree_line(line: str) -> Optional[WorktreeRecord]:
    line = line.strip()
    if not line:
        return None

    if line.endswith(BARE_SUFFIX):
        path = line[: -len(BARE_SUFFIX)].strip()
        return WorktreeRecord(path=path, is_bare=True) if path else None

    if line.endswith(DETACHED_SUFFIX):
        path, commit = split_path_hash(line[: -len(DETACHED_SUFFIX)])
        if not path:
            return None
        return WorktreeRecord(path=path, commit_hash=commit, is_detached=True)

    start = line.rfind("[")
    end = line.rfind("]")
    if start == -1 or end == -1 or end <= start:
        return None
    path, commit = split_path_hash(line[:start])
    if not path:
        return None
    return WorktreeRecord(path=path, branch=line[start + 1 : end], commit_hash=commit)


def parse_worktree_list(output: str) -> list[WorktreeRecord]:
    records: list[WorktreeRecord] = []
    for line in output.splitlines():
        record = parse_worktree_line(line)
        if record is not None:
            records.append(record)
    return records


def parse_status(output: str) -> StatusSummary:
    """Count changes in ``git status --porcelain`` output.

    A file staged and then modified again counts as both staged and
    modified.
    """
    modified = staged = untracked = 0
    for line in output.splitlines():
        if len(line) < 2:
            continue
        index, worktree = line[0], line[1]
        if index == "?" and worktree == "?":
            untracked += 1
            continue
        if index not in (" ", "?"):
            staged += 1
        if worktree not in (" ", "?"):
            modified += 1
    return StatusSummary(modified=modified, staged=staged, untracked=untracked)


def parse_branch_list(output: str) -> list[str]:
    branches: list[str] = []
    for line in output.splitlines():
        name = line.strip()
        # "(HEAD detached at ...)" is not a branch
        if name and not name.startswith("("):
            branches.append(name)
    return branches
