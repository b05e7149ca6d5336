"""Modal surfaces: each one owns its own state and reports an intent when resolved."""
from __future__ import annotations

import enum
from typing import Optional, Sequence

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from .events import (
    ActionChosen,
    Cancelled,
    ConfirmResolved,
    ConfirmSubject,
    CreateFormResult,
    FormSubmitted,
    Intent,
    Key,
)
from .models import WORKTREE_ACTIONS, Action, ViewItem
from .styles import ROUNDED, Styles, pane

MODAL_WIDTH = 60


class ActionPicker:
    def __init__(self, actions: Sequence[Action] = WORKTREE_ACTIONS) -> None:
        self.visible = False
        self.item: Optional[ViewItem] = None
        self.actions: tuple[Action, ...] = tuple(actions)
        self.selected = 0

    def show(self, item: Optional[ViewItem]) -> None:
        self.visible = True
        self.item = item
        self.selected = 0

    def hide(self) -> None:
        self.visible = False
        self.item = None
        self.selected = 0

    def set_actions(self, actions: Sequence[Action]) -> None:
        self.actions = tuple(actions)
        if self.selected >= len(self.actions):
            self.selected = 0

    @property
    def selected_action(self) -> Optional[Action]:
        if 0 <= self.selected < len(self.actions):
            return self.actions[self.selected]
        return None

    def move_up(self) -> None:
        if self.actions and self.selected > 0:
            self.selected -= 1

    def move_down(self) -> None:
        if self.actions and self.selected < len(self.actions) - 1:
            self.selected += 1

    def handle_key(self, key: Key) -> Optional[Intent]:
        if not self.visible:
            return None
        if key.name == "escape":
            self.hide()
            return Cancelled()
        if key.name == "enter":
            action = self.selected_action
            if action is None:
                return None
            item = self.item
            self.hide()
            return ActionChosen(action, item)
        if key.name == "up" or key.char == "k":
            self.move_up()
        elif key.name == "down" or key.char == "j":
            self.move_down()
        return None

    def render(self, styles: Styles) -> RenderableType:
        title = "Actions" if self.item is None else f"Actions: {self.item.title}"
        lines: list[RenderableType] = [Text(title, style=styles.title), Text("")]
        for index, action in enumerate(self.actions):
            if index == self.selected:
                lines.append(Text(f" ▸ {action.label} ", style=styles.selected))
                if action.description:
                    lines.append(Text(f"   {action.description}", style=styles.description))
            else:
                lines.append(Text(f"   {action.label}", style=styles.normal))
        lines.append(Text(""))
        lines.append(Text("↑/↓: navigate • Enter: select • Esc: cancel", style=styles.help))
        return pane(Group(*lines), styles, MODAL_WIDTH)


CONFIRM = 0
CANCEL = 1


class ConfirmDialog:
    def __init__(self) -> None:
        self.visible = False
        self.title = ""
        self.message = ""
        self.confirm_label = "Confirm"
        self.cancel_label = "Cancel"
        self.danger = False
        self.force_option = False
        self.force_selected = False
        self.selected = CANCEL
        self.subject: Optional[ConfirmSubject] = None

    def show(
        self,
        title: str,
        message: str,
        subject: Optional[ConfirmSubject] = None,
        *,
        confirm_label: str = "Confirm",
        force_option: bool = False,
        danger: bool = False,
    ) -> None:
        self.visible = True
        self.title = title
        self.message = message
        self.subject = subject
        self.confirm_label = confirm_label
        self.force_option = force_option
        self.force_selected = False
        self.danger = danger
        self.selected = CANCEL

    def hide(self) -> None:
        self.visible = False
        self.danger = False
        self.force_option = False
        self.force_selected = False
        self.subject = None
        self.selected = CANCEL

    def move_left(self) -> None:
        self.selected = CONFIRM

    def move_right(self) -> None:
        self.selected = CANCEL

    def toggle_force(self) -> None:
        if self.force_option:
            self.force_selected = not self.force_selected

    def _resolve(self, confirmed: bool) -> ConfirmResolved:
        result = ConfirmResolved(
            confirmed=confirmed,
            force=self.force_selected if confirmed else False,
            subject=self.subject if confirmed else None,
        )
        self.hide()
        return result

    def handle_key(self, key: Key) -> Optional[Intent]:
        if not self.visible:
            return None
        if key.name == "escape" or key.char == "n":
            return self._resolve(False)
        if key.char == "y":
            return self._resolve(True)
        if key.name == "enter":
            return self._resolve(self.selected == CONFIRM)
        if key.name in ("left", "shift+tab") or key.char == "h":
            self.move_left()
        elif key.name in ("right", "tab") or key.char == "l":
            self.move_right()
        elif key.name == "space" or key.char == "f":
            self.toggle_force()
        return None

    def render(self, styles: Styles) -> RenderableType:
        title_style = styles.error if self.danger else styles.title
        lines: list[RenderableType] = [
            Text(self.title, style=styles.title + title_style),
            Text(""),
            Text(self.message, style=styles.text),
            Text(""),
        ]
        if self.force_option:
            checkbox = "[x]" if self.force_selected else "[ ]"
            lines.append(Text(f"{checkbox} Force removal (ignore uncommitted changes)", style=styles.text))
            lines.append(Text(""))
        if self.selected == CONFIRM:
            confirm_style = styles.button_danger if self.danger else styles.button_active
            cancel_style = styles.button_inactive
        else:
            confirm_style = styles.button_inactive
            cancel_style = styles.button_active
        buttons = Text.assemble(
            (f"  {self.confirm_label}  ", confirm_style),
            "  ",
            (f"  {self.cancel_label}  ", cancel_style),
        )
        lines.append(buttons)
        lines.append(Text(""))
        lines.append(Text("y/n: quick answer • ←/→: select • Enter: confirm • Esc: cancel", style=styles.help))
        border = styles.error if self.danger else styles.border
        return pane(Group(*lines), styles, MODAL_WIDTH, border_style=border)


class FormField(enum.IntEnum):
    BRANCH = 0
    PATH = 1
    CREATE_BRANCH = 2


CURSOR = "│"


class CreateForm:
    def __init__(self) -> None:
        self.visible = False
        self.focused = FormField.BRANCH
        self.branch = ""
        self.path = ""
        self.create_branch = True
        self.cursors = {FormField.BRANCH: 0, FormField.PATH: 0}
        self.error = ""

    def show(self, branch: str = "", path: str = "", create_branch: bool = True) -> None:
        self.visible = True
        self.branch = branch
        self.path = path
        self.create_branch = create_branch
        self.cursors = {FormField.BRANCH: len(branch), FormField.PATH: len(path)}
        self.focused = FormField.PATH if branch else FormField.BRANCH
        self.error = ""

    def hide(self) -> None:
        self.visible = False
        self.focused = FormField.BRANCH
        self.branch = ""
        self.path = ""
        self.create_branch = True
        self.cursors = {FormField.BRANCH: 0, FormField.PATH: 0}
        self.error = ""

    def _value(self, field: FormField) -> str:
        return self.branch if field == FormField.BRANCH else self.path

    def _set_value(self, field: FormField, value: str) -> None:
        if field == FormField.BRANCH:
            self.branch = value
        else:
            self.path = value

    @property
    def cursor(self) -> int:
        return self.cursors.get(self.focused, 0)

    def _focus(self, field: FormField) -> None:
        self.focused = field
        if field in self.cursors:
            self.cursors[field] = len(self._value(field))

    def focus_next(self) -> None:
        self._focus(FormField((self.focused + 1) % len(FormField)))

    def focus_prev(self) -> None:
        self._focus(FormField((self.focused - 1) % len(FormField)))

    def insert(self, text: str) -> None:
        field = self.focused
        if field not in self.cursors:
            return
        value = self._value(field)
        pos = min(self.cursors[field], len(value))
        self._set_value(field, value[:pos] + text + value[pos:])
        self.cursors[field] = pos + len(text)

    def delete_back(self) -> None:
        field = self.focused
        if field not in self.cursors:
            return
        value = self._value(field)
        pos = min(self.cursors[field], len(value))
        if pos > 0:
            self._set_value(field, value[: pos - 1] + value[pos:])
            self.cursors[field] = pos - 1

    def move_cursor(self, delta: int) -> None:
        field = self.focused
        if field in self.cursors:
            value = self._value(field)
            self.cursors[field] = min(max(self.cursors[field] + delta, 0), len(value))

    def validate(self) -> bool:
        if not self.branch:
            self.error = "Branch name is required" if self.create_branch else "Existing branch name is required"
            return False
        if not self.path:
            self.error = "Path is required"
            return False
        self.error = ""
        return True

    def submit(self) -> Optional[Intent]:
        if not self.validate():
            return None
        result = CreateFormResult(branch=self.branch, path=self.path, create_branch=self.create_branch)
        self.hide()
        return FormSubmitted(result)

    def handle_key(self, key: Key) -> Optional[Intent]:
        if not self.visible:
            return None
        name = key.name
        if name == "escape":
            self.hide()
            return Cancelled()
        if name == "enter":
            return self.submit()
        if name == "tab":
            self.focus_next()
        elif name == "shift+tab":
            self.focus_prev()
        elif name == "backspace":
            self.delete_back()
        elif name == "left":
            self.move_cursor(-1)
        elif name == "right":
            self.move_cursor(1)
        elif name == "space" and self.focused == FormField.CREATE_BRANCH:
            self.create_branch = not self.create_branch
        elif key.printable:
            self.insert(key.char or "")
        return None

    def _input(self, field: FormField, styles: Styles) -> Panel:
        value = self._value(field)
        focused = self.focused == field
        if focused:
            pos = min(self.cursors[field], len(value))
            text = Text(value[:pos] + CURSOR + value[pos:], style=styles.text)
        else:
            text = Text(value or " ", style=styles.text)
        return Panel(
            text,
            box=ROUNDED,
            border_style=styles.input_focused if focused else styles.input_border,
            padding=(0, 1),
        )

    def render(self, styles: Styles) -> RenderableType:
        branch_label = "Branch name:" if self.create_branch else "Existing branch:"
        checkbox = "[✓]" if self.create_branch else "[ ]"
        checkbox_style = styles.tab_active if self.focused == FormField.CREATE_BRANCH else styles.text
        lines: list[RenderableType] = [
            Text("Create New Worktree", style=styles.title),
            Text(""),
            Text(branch_label, style=styles.help),
            self._input(FormField.BRANCH, styles),
            Text("Worktree path:", style=styles.help),
            self._input(FormField.PATH, styles),
            Text(f"{checkbox} Create new branch", style=checkbox_style),
        ]
        if self.error:
            lines.append(Text(""))
            lines.append(Text(f"✗ {self.error}", style=styles.title + styles.error))
        lines.append(Text(""))
        lines.append(Text("Tab: next field • Space: toggle • Enter: create • Esc: cancel", style=styles.help))
        return pane(Group(*lines), styles, MODAL_WIDTH)
