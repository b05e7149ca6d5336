from __future__ import annotations

import enum
from typing import Optional, Sequence

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from .events import ClearFeedback, Key, Mouse, WHEEL_DOWN, WHEEL_UP
from .models import TextDetail, ViewItem, WorktreeDetail, WorktreeRecord
from .styles import Styles, pane


class ItemList:
    """Scrollable, selectable list of view items."""

    def __init__(self, items: Sequence[ViewItem] = ()) -> None:
        self._items: tuple[ViewItem, ...] = tuple(items)
        self.selected = 0
        self.width = 0
        self.height = 0
        self.offset_x = 0
        self.offset_y = 0
        self._top = 0

    @property
    def items(self) -> tuple[ViewItem, ...]:
        return self._items

    def set_items(self, items: Sequence[ViewItem]) -> None:
        self._items = tuple(items)
        if not self._items:
            self.selected = 0
        elif self.selected >= len(self._items):
            self.selected = len(self._items) - 1
        self._scroll_into_view()

    def set_selected(self, index: int) -> None:
        if not self._items:
            self.selected = 0
            return
        self.selected = min(max(index, 0), len(self._items) - 1)
        self._scroll_into_view()

    @property
    def selected_item(self) -> Optional[ViewItem]:
        if 0 <= self.selected < len(self._items):
            return self._items[self.selected]
        return None

    def move_down(self) -> None:
        if self._items:
            self.set_selected(self.selected + 1)

    def move_up(self) -> None:
        if self._items:
            self.set_selected(self.selected - 1)

    def page_size(self) -> int:
        # An unsized list still moves, one row at a time
        return self.height if self.height >= 1 else 1

    def page_down(self) -> None:
        if self._items:
            self.set_selected(self.selected + self.page_size())

    def page_up(self) -> None:
        if self._items:
            self.set_selected(self.selected - self.page_size())

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._scroll_into_view()

    def set_offset(self, x: int, y: int) -> None:
        self.offset_x = x
        self.offset_y = y

    def contains(self, x: int, y: int) -> bool:
        return (
            self.offset_x <= x < self.offset_x + self.width
            and self.offset_y <= y < self.offset_y + self.height
        )

    def _scroll_into_view(self) -> None:
        if self.height < 1:
            self._top = 0
            return
        if self.selected < self._top:
            self._top = self.selected
        elif self.selected >= self._top + self.height:
            self._top = self.selected - self.height + 1
        self._top = max(0, min(self._top, max(len(self._items) - self.height, 0)))

    def handle_key(self, key: Key) -> bool:
        if key.name == "down" or key.char == "j":
            self.move_down()
        elif key.name == "up" or key.char == "k":
            self.move_up()
        elif key.name == "pagedown":
            self.page_down()
        elif key.name == "pageup":
            self.page_up()
        else:
            return False
        return True

    def handle_mouse(self, event: Mouse) -> bool:
        if not self.contains(event.x, event.y):
            return False
        if event.button == WHEEL_DOWN:
            self.move_down()
        elif event.button == WHEEL_UP:
            self.move_up()
        elif event.button == "left":
            index = self._top + (event.y - self.offset_y)
            if 0 <= index < len(self._items):
                self.set_selected(index)
        return True

    def render(self, styles: Styles, width: int, height: int, title: str = "") -> RenderableType:
        rows = max(height - 2, 1)
        inner = max(width - 4, 1)
        if not self._items:
            body: RenderableType = Text("No items", style=styles.muted)
        else:
            top = self._top if self.height >= 1 else max(0, self.selected - rows + 1)
            lines = []
            for index in range(top, min(top + rows, len(self._items))):
                item = self._items[index]
                if index == self.selected:
                    line = Text("▸ " + item.title, style=styles.selected, no_wrap=True)
                else:
                    line = Text("  " + item.title, style=styles.normal, no_wrap=True)
                line.truncate(inner, overflow="ellipsis", pad=True)
                lines.append(line)
            body = Group(*lines)
        return pane(body, styles, width, height, title=title or None)


class DetailsPane:
    """Read-only view of the selected item."""

    def __init__(self) -> None:
        self.item: Optional[ViewItem] = None
        self.width = 0
        self.height = 0

    def set_item(self, item: Optional[ViewItem]) -> None:
        self.item = item

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def render(self, styles: Styles, width: int, height: int) -> RenderableType:
        if self.item is None:
            body: RenderableType = Text("Select an item to view details", style=styles.muted)
        else:
            body = self._render_item(self.item, styles)
        return pane(body, styles, width, height)

    def _render_item(self, item: ViewItem, styles: Styles) -> RenderableType:
        title = Text(item.title, style=styles.title)
        detail = item.detail
        if isinstance(detail, WorktreeDetail):
            return Group(title, Text(""), self._worktree_grid(detail.record, styles))
        if isinstance(detail, TextDetail):
            text = detail.text or item.description
            return Group(title, Text(""), Text(text, style=styles.description))
        return title

    def _worktree_grid(self, record: WorktreeRecord, styles: Styles) -> Table:
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style=styles.label, justify="right", no_wrap=True)
        grid.add_column(style=styles.text)
        grid.add_row("Path:", record.path)
        if record.is_bare:
            grid.add_row("Type:", "Bare repository")
        elif record.is_detached:
            grid.add_row("State:", "Detached HEAD")
            if record.commit_hash:
                grid.add_row("Commit:", record.commit_hash)
        else:
            grid.add_row("Branch:", record.branch)
            if record.commit_hash:
                grid.add_row("Commit:", record.commit_hash)
        if not record.is_bare:
            grid.add_row("Status:", status_text(record, styles))
        return grid


def status_text(record: WorktreeRecord, styles: Styles) -> Text:
    status = record.status
    if status is None:
        return Text("unknown", style=styles.muted)
    if status.clean:
        return Text("✓ Clean", style=styles.success)
    parts: list[Text] = []
    if status.staged:
        parts.append(Text(f"{status.staged} staged", style=styles.success))
    if status.modified:
        parts.append(Text(f"{status.modified} modified", style=styles.error))
    if status.untracked:
        parts.append(Text(f"{status.untracked} untracked", style=styles.muted))
    return Text(", ").join(parts)


class Tab(enum.IntEnum):
    WORKTREES = 0
    BRANCHES = 1
    SETTINGS = 2

    @property
    def label(self) -> str:
        return self.name.title()

    @property
    def lists_items(self) -> bool:
        return self in (Tab.WORKTREES, Tab.BRANCHES)


TAB_PADDING = 2


class TabBar:
    def __init__(self) -> None:
        self.active = Tab.WORKTREES
        self.width = 0

    def next(self) -> None:
        self.active = Tab((self.active + 1) % len(Tab))

    def prev(self) -> None:
        self.active = Tab((self.active - 1) % len(Tab))

    def positions(self) -> list[tuple[Tab, int, int]]:
        positions = []
        x = 0
        for tab in Tab:
            end = x + len(tab.label) + 2 * TAB_PADDING
            positions.append((tab, x, end))
            x = end
        return positions

    def contains(self, x: int, y: int) -> bool:
        return y == 0 and 0 <= x < self.positions()[-1][2]

    def handle_mouse(self, event: Mouse) -> bool:
        if event.button != "left" or not self.contains(event.x, event.y):
            return False
        for tab, start, end in self.positions():
            if start <= event.x < end:
                self.active = tab
                return True
        return False

    def render(self, styles: Styles, width: int) -> list[Text]:
        row = Text(no_wrap=True, end="")
        pad = " " * TAB_PADDING
        for tab in Tab:
            style = styles.tab_active if tab == self.active else styles.tab_inactive
            row.append(f"{pad}{tab.label}{pad}", style=style)
        rule = Text("─" * max(width, row.cell_len), style=styles.border, no_wrap=True, end="")
        return [row, rule]


class FeedbackKind(enum.Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


FEEDBACK_ICONS = {
    FeedbackKind.SUCCESS: "✓ ",
    FeedbackKind.ERROR: "✗ ",
    FeedbackKind.INFO: "ℹ ",
}


class Feedback:
    """Transient status banner.

    Every ``show`` bumps a generation counter; the returned clear event only
    clears the banner while its generation is still the current one.
    """

    def __init__(self, duration: float = 3.0) -> None:
        self.duration = duration
        self.visible = False
        self.message = ""
        self.kind = FeedbackKind.INFO
        self.generation = 0

    def show(self, message: str, kind: FeedbackKind) -> ClearFeedback:
        self.generation += 1
        self.message = message
        self.kind = kind
        self.visible = True
        return ClearFeedback(self.generation)

    def success(self, message: str) -> ClearFeedback:
        return self.show(message, FeedbackKind.SUCCESS)

    def error(self, message: str) -> ClearFeedback:
        return self.show(message, FeedbackKind.ERROR)

    def info(self, message: str) -> ClearFeedback:
        return self.show(message, FeedbackKind.INFO)

    def clear(self) -> None:
        self.visible = False
        self.message = ""

    def expire(self, event: ClearFeedback) -> bool:
        if event.generation != self.generation:
            return False
        self.clear()
        return True

    def render(self, styles: Styles) -> Text:
        if not self.visible or not self.message:
            return Text("", end="")
        style = {
            FeedbackKind.SUCCESS: styles.feedback_success,
            FeedbackKind.ERROR: styles.feedback_error,
            FeedbackKind.INFO: styles.feedback_info,
        }[self.kind]
        return Text(f" {FEEDBACK_ICONS[self.kind]}{self.message} ", style=style, no_wrap=True, end="")
