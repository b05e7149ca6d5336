"""The interactive session: owns every surface and routes input between them."""
from __future__ import annotations

import enum
import os
from dataclasses import dataclass, fields, replace
from typing import Callable, Optional, Union

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from .config import AppConfig
from .events import (
    ActionChosen,
    Cancelled,
    ClearFeedback,
    ConfirmResolved,
    CreateFormResult,
    DeleteWorktree,
    Event,
    FormSubmitted,
    Intent,
    Key,
    Mouse,
    PruneWorktrees,
    Resize,
)
from .exceptions import GroveError, NotARepositoryError, OperationFailedError, TerminalError
from .git_service import AddWorktreeOptions, GitService
from .logging_config import get_logger
from .models import BRANCH_ACTIONS, WORKTREE_ACTIONS, ViewItem, WorktreeRecord, branch_item, worktree_item
from .panes import DetailsPane, Feedback, ItemList, Tab, TabBar
from .screens import MODAL_WIDTH, ActionPicker, ConfirmDialog, CreateForm
from .styles import build_styles, join_horizontal, overlay, pane, render_lines
from .terminal import TerminalOpener, cd_command

logger = get_logger(__name__)

DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 24
# tab bar, tab rule, feedback row, help row
CHROME_ROWS = 4
LIST_SHARE = 40
LIST_TOP = 3
MODAL_TOP = 2

Scheduler = Callable[[float, ClearFeedback], None]
ModalSurface = Union[ActionPicker, ConfirmDialog, CreateForm]


class Modal(enum.IntEnum):
    """Which surface owns input focus. Higher values take precedence."""

    NONE = 0
    ACTION_PICKER = 1
    CREATION_FORM = 2
    CONFIRM_DIALOG = 3


@dataclass(frozen=True)
class Snapshot:
    worktrees: tuple[WorktreeRecord, ...] = ()
    branches: tuple[str, ...] = ()
    error: Optional[GroveError] = None


def _reason(exc: GroveError) -> str:
    reason = getattr(exc, "reason", None)
    return reason or str(exc)


def _one_line(message: str) -> str:
    return " ".join(part.strip() for part in message.splitlines() if part.strip())


class Session:
    def __init__(
        self,
        git: GitService,
        *,
        config: Optional[AppConfig] = None,
        opener: Optional[TerminalOpener] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.git = git
        self.config = config or AppConfig()
        self.opener = opener or TerminalOpener(self.config.terminal)
        self.scheduler = scheduler
        self.styles = build_styles(self.config.theme, self.config.dark)

        self.snapshot = Snapshot()
        self.tabs = TabBar()
        self.lists = {Tab.WORKTREES: ItemList(), Tab.BRANCHES: ItemList()}
        self.details = DetailsPane()
        self.feedback = Feedback(self.config.feedback_seconds)
        self.picker = ActionPicker()
        self.confirm = ConfirmDialog()
        self.create_form = CreateForm()

        self.width = 0
        self.height = 0
        self._modal = Modal.NONE
        self._quitting = False
        self._target_path: Optional[str] = None

    # State accessors

    @property
    def quitting(self) -> bool:
        return self._quitting

    @property
    def target_path(self) -> Optional[str]:
        return self._target_path

    @property
    def active_modal(self) -> Modal:
        return self._modal

    @property
    def active_tab(self) -> Tab:
        return self.tabs.active

    @property
    def worktrees(self) -> tuple[WorktreeRecord, ...]:
        return self.snapshot.worktrees

    @property
    def load_error(self) -> Optional[GroveError]:
        return self.snapshot.error

    @property
    def item_list(self) -> Optional[ItemList]:
        return self.lists.get(self.tabs.active)

    @property
    def selected_item(self) -> Optional[ViewItem]:
        items = self.item_list
        return items.selected_item if items is not None else None

    def _modal_surface(self, modal: Modal) -> Optional[ModalSurface]:
        return {
            Modal.ACTION_PICKER: self.picker,
            Modal.CREATION_FORM: self.create_form,
            Modal.CONFIRM_DIALOG: self.confirm,
        }.get(modal)

    def _open(self, modal: Modal) -> bool:
        """Give ``modal`` input focus, hiding every other modal.

        A modal never displaces one of higher precedence.
        """
        if modal < self._modal:
            return False
        for other in (Modal.ACTION_PICKER, Modal.CREATION_FORM, Modal.CONFIRM_DIALOG):
            surface = self._modal_surface(other)
            if other != modal and surface is not None and surface.visible:
                surface.hide()
        self._modal = modal
        return True

    # Domain snapshot

    def refresh(self) -> None:
        """Reload worktrees, their status and local branches from git."""
        try:
            records = self.git.list_worktrees()
        except GroveError as exc:
            logger.info("load failed: %s", exc)
            self.snapshot = Snapshot(error=exc)
            self._sync_items()
            return

        statuses = self.git.worktree_statuses(records)
        records = [replace(record, status=statuses.get(record.path)) for record in records]

        try:
            branches = self.git.list_branches()
        except GroveError as exc:
            logger.warning("branch listing failed: %s", exc)
            branches = []

        self.snapshot = Snapshot(tuple(records), tuple(branches))
        logger.info("loaded %d worktrees, %d branches", len(records), len(branches))
        self._sync_items()

    def _sync_items(self) -> None:
        self.lists[Tab.WORKTREES].set_items([worktree_item(r) for r in self.snapshot.worktrees])
        self.lists[Tab.BRANCHES].set_items([branch_item(b) for b in self.snapshot.branches])
        self.details.set_item(self.selected_item)

    # Event routing

    def dispatch(self, event: Event) -> None:
        if self._quitting:
            return
        if isinstance(event, Key):
            self._handle_key(event)
        elif isinstance(event, Mouse):
            self._handle_mouse(event)
        elif isinstance(event, Resize):
            self._handle_resize(event)
        elif isinstance(event, ClearFeedback):
            self.feedback.expire(event)

    def quit(self, target_path: Optional[str] = None) -> None:
        self._quitting = True
        self._target_path = target_path
        for surface in (self.picker, self.create_form, self.confirm):
            surface.hide()
        self._modal = Modal.NONE

    def _handle_key(self, key: Key) -> None:
        if key.name == "ctrl+c":
            self.quit()
            return
        surface = self._modal_surface(self._modal)
        if surface is not None:
            intent = surface.handle_key(key)
            if not surface.visible:
                self._modal = Modal.NONE
            if intent is not None:
                self._handle_intent(intent)
            return
        self._handle_normal_key(key)

    def _handle_normal_key(self, key: Key) -> None:
        if key.char == "q":
            self.quit()
        elif key.name == "tab":
            self.tabs.next()
            self._sync_items()
        elif key.name == "shift+tab":
            self.tabs.prev()
            self._sync_items()
        elif key.name == "enter":
            self._show_actions()
        elif key.char == "n":
            if self._can_create():
                self._show_create_form()
        elif key.char == "p":
            self._show_prune_confirm()
        elif key.char == "r":
            self.refresh()
            if self.load_error is not None:
                self._error(str(self.load_error))
            else:
                self._info(f"Refreshed {len(self.worktrees)} worktrees")
        elif self.item_list is not None and self.item_list.handle_key(key):
            self.details.set_item(self.selected_item)

    def _handle_mouse(self, event: Mouse) -> None:
        if self._modal != Modal.NONE:
            return
        if self.tabs.contains(event.x, event.y):
            if self.tabs.handle_mouse(event):
                self._sync_items()
            return
        if self.item_list is not None and self.item_list.handle_mouse(event):
            self.details.set_item(self.selected_item)

    def _handle_resize(self, event: Resize) -> None:
        self.width = event.width
        self.height = event.height
        pane_height = max(event.height - CHROME_ROWS, 0)
        list_width, details_width = self._pane_widths(event.width)
        for items in self.lists.values():
            items.set_size(list_width, max(pane_height - 2, 0))
            items.set_offset(0, LIST_TOP)
        self.details.set_size(details_width, pane_height)
        self.tabs.width = event.width

    @staticmethod
    def _pane_widths(width: int) -> tuple[int, int]:
        list_width = width * LIST_SHARE // 100
        return list_width, max(width - list_width - 1, 0)

    # Normal-state commands

    def _in_repository(self) -> bool:
        return not isinstance(self.load_error, NotARepositoryError)

    def _can_create(self) -> bool:
        return self.tabs.active == Tab.WORKTREES and self._in_repository()

    def _show_actions(self) -> None:
        item = self.selected_item
        if item is None or not self.tabs.active.lists_items:
            return
        actions = BRANCH_ACTIONS if self.tabs.active == Tab.BRANCHES else WORKTREE_ACTIONS
        if not self._open(Modal.ACTION_PICKER):
            return
        self.picker.set_actions(actions)
        self.picker.show(item)

    def _show_create_form(self, branch: str = "", create_branch: bool = True) -> None:
        if self._open(Modal.CREATION_FORM):
            self.create_form.show(branch=branch, create_branch=create_branch)

    def _show_prune_confirm(self) -> None:
        if not self._can_create():
            return
        try:
            preview = self.git.prune_worktrees(dry_run=True)
        except GroveError as exc:
            self._error(f"Failed to prune worktrees: {_reason(exc)}")
            return
        message = "Remove administrative data for worktrees whose directories are gone?"
        if preview:
            message += "\n\n" + preview
        else:
            message += "\n\nNo stale worktrees were found."
        if self._open(Modal.CONFIRM_DIALOG):
            self.confirm.show("Prune Worktrees?", message, PruneWorktrees(), confirm_label="Prune")

    # Intents

    def _handle_intent(self, intent: Intent) -> None:
        if isinstance(intent, ActionChosen):
            self._run_action(intent)
        elif isinstance(intent, ConfirmResolved):
            self._resolve_confirm(intent)
        elif isinstance(intent, FormSubmitted):
            self._create_worktree(intent.result)
        elif isinstance(intent, Cancelled):
            logger.debug("modal cancelled")

    def _run_action(self, chosen: ActionChosen) -> None:
        item = chosen.item
        if item is None:
            return
        action_id = chosen.action.id
        logger.debug("action %s on %s", action_id, item.id)
        if action_id == "worktree":
            # Branch-prefilled creation is not tied to the Worktrees tab
            if self._in_repository():
                self._show_create_form(branch=item.id, create_branch=False)
            return
        record = item.worktree
        if record is None:
            return
        if action_id == "open":
            self._open_terminal(record)
        elif action_id == "cd":
            self._info(f"Copy: {cd_command(record.path)}")
        elif action_id == "delete":
            if not self._open(Modal.CONFIRM_DIALOG):
                return
            self.confirm.show(
                "Delete Worktree?",
                f"Remove worktree '{item.title}' at {record.path}?",
                DeleteWorktree(record.path, item.title),
                confirm_label="Delete",
                force_option=True,
                danger=True,
            )

    def _open_terminal(self, record: WorktreeRecord) -> None:
        try:
            result = self.opener.open_worktree(record.path)
        except TerminalError as exc:
            self._error(f"Failed to open terminal: {exc}")
            return
        if result.success:
            self._success(result.message)
        else:
            self._info(result.message)

    def _resolve_confirm(self, resolved: ConfirmResolved) -> None:
        if not resolved.confirmed:
            return
        subject = resolved.subject
        if isinstance(subject, DeleteWorktree):
            self._remove_worktree(subject, resolved.force)
        elif isinstance(subject, PruneWorktrees):
            self._prune_worktrees()

    def _remove_worktree(self, subject: DeleteWorktree, force: bool) -> None:
        try:
            self.git.remove_worktree(subject.path, force=force)
        except GroveError as exc:
            self._error(f"Failed to remove worktree: {_reason(exc)}")
            return
        logger.info("removed worktree %s (force=%s)", subject.path, force)
        self.refresh()
        self._success(f"Removed worktree: {subject.title}")

    def _prune_worktrees(self) -> None:
        try:
            output = self.git.prune_worktrees()
        except GroveError as exc:
            self._error(f"Failed to prune worktrees: {_reason(exc)}")
            return
        self.refresh()
        self._success(f"Pruned: {output}" if output else "Pruned stale worktrees")

    def resolve_path(self, path: str) -> str:
        path = os.path.expanduser(path)
        if not os.path.isabs(path):
            base = os.path.expanduser(self.config.worktree_dir) if self.config.worktree_dir else self.git.repo_path
            path = os.path.join(base, path)
        return os.path.normpath(path)

    def _create_worktree(self, result: CreateFormResult) -> None:
        path = self.resolve_path(result.path)
        options = AddWorktreeOptions(path=path, branch=result.branch, create_branch=result.create_branch)
        try:
            self.git.add_worktree(options)
        except (NotARepositoryError, OperationFailedError) as exc:
            self._error(f"Failed to create worktree: {_reason(exc)}")
            return
        logger.info("created worktree %s on %s", path, result.branch)
        if self.config.jump_on_create:
            self.quit(target_path=path)
            return
        self.refresh()
        self._success(f"Created worktree: {os.path.basename(path)}")

    # Feedback

    def _notify(self, message: str, show: Callable[[str], ClearFeedback]) -> None:
        clear = show(_one_line(message))
        if self.scheduler is not None and self.config.feedback_seconds > 0:
            self.scheduler(self.config.feedback_seconds, clear)

    def _success(self, message: str) -> None:
        self._notify(message, self.feedback.success)

    def _error(self, message: str) -> None:
        logger.warning(message)
        self._notify(message, self.feedback.error)

    def _info(self, message: str) -> None:
        self._notify(message, self.feedback.info)

    # Rendering

    def render(self) -> Text:
        """Compose the full frame from the current state."""
        if self._quitting:
            return Text("") if self._target_path else Text("Goodbye!")

        styles = self.styles
        width = self.width or DEFAULT_WIDTH
        height = self.height or DEFAULT_HEIGHT
        pane_height = max(height - CHROME_ROWS, 3)

        lines = self.tabs.render(styles, width)
        lines += self._render_content(width, pane_height)
        lines.append(self.feedback.render(styles))
        lines.append(Text(self._help_text(), style=styles.help, no_wrap=True, end=""))

        surface = self._modal_surface(self._modal)
        if surface is not None:
            modal_width = min(MODAL_WIDTH, width)
            layer = render_lines(surface.render(styles), modal_width)
            lines = overlay(lines, layer, max((width - modal_width) // 2, 0), MODAL_TOP)

        for line in lines:
            line.truncate(width, overflow="crop")
        return Text("\n").join(lines)

    def _render_content(self, width: int, height: int) -> list[Text]:
        styles = self.styles
        tab = self.tabs.active
        if tab == Tab.SETTINGS:
            return render_lines(pane(self._settings_view(), styles, width, height, title="Settings"), width, height)
        error = self.load_error
        if error is not None:
            return render_lines(pane(self._error_view(error), styles, width, height), width, height)
        list_width, details_width = self._pane_widths(width)
        items = self.lists[tab]
        left = render_lines(items.render(styles, list_width, height, title=tab.label), list_width, height)
        right = render_lines(self.details.render(styles, details_width, height), details_width, height)
        return join_horizontal(left, right, list_width)

    def _error_view(self, error: GroveError) -> RenderableType:
        styles = self.styles
        if isinstance(error, NotARepositoryError):
            return Group(
                Text("Not a git repository", style=styles.title + styles.error),
                Text(""),
                Text(f"{error.path} is not inside a git repository.", style=styles.text),
                Text("Run grove from a repository or pass its path on the command line.", style=styles.muted),
            )
        return Group(
            Text("Failed to load worktrees", style=styles.title + styles.error),
            Text(""),
            Text(_reason(error), style=styles.text),
            Text("Press r to retry.", style=styles.muted),
        )

    def _settings_view(self) -> RenderableType:
        styles = self.styles
        config = self.config
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style=styles.label, justify="right", no_wrap=True)
        grid.add_column(style=styles.text)
        grid.add_row("Config file:", config.path or "(defaults)")
        grid.add_row("Repository:", self.git.repo_path)
        grid.add_row("Worktree dir:", config.worktree_dir or "(repository)")
        grid.add_row("Jump on create:", "yes" if config.jump_on_create else "no")
        grid.add_row("Feedback:", f"{config.feedback_seconds:g}s")
        grid.add_row("Appearance:", "dark" if config.dark else "light")
        grid.add_row("Terminal:", config.terminal or "(auto-detect)")

        colors = Table.grid(padding=(0, 2))
        colors.add_column(style=styles.label, no_wrap=True)
        colors.add_column(no_wrap=True)
        palette = config.theme.colors
        for color in fields(palette):
            name = color.name
            value = getattr(palette, name).pick(config.dark)
            colors.add_row(name, Text.assemble(("██ ", value), (value, styles.text)))
        return Group(grid, Text(""), Text("Theme colors", style=styles.title), colors)

    def _help_text(self) -> str:
        if self._modal != Modal.NONE:
            return " Esc: cancel • Ctrl+C: quit"
        tab = self.tabs.active
        if tab == Tab.WORKTREES:
            return " ↑/↓: navigate • Enter: actions • n: new • p: prune • r: refresh • Tab: switch • q: quit"
        if tab == Tab.BRANCHES:
            return " ↑/↓: navigate • Enter: actions • r: refresh • Tab: switch • q: quit"
        return " Tab: switch • q: quit"
