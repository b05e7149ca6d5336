"""Theme styles and helpers that turn rich renderables into frame lines."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rich import box
from rich.console import Console, RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.text import Text

from .config import Theme

ROUNDED = box.ROUNDED

_console = Console(
    width=80,
    height=24,
    color_system="truecolor",
    force_terminal=True,
    legacy_windows=False,
)


@dataclass(frozen=True)
class Styles:
    text: Style
    muted: Style
    help: Style
    border: Style
    title: Style
    label: Style
    selected: Style
    normal: Style
    description: Style
    tab_active: Style
    tab_inactive: Style
    success: Style
    error: Style
    info: Style
    feedback_success: Style
    feedback_error: Style
    feedback_info: Style
    button_active: Style
    button_danger: Style
    button_inactive: Style
    input_border: Style
    input_focused: Style


def build_styles(theme: Theme, dark: bool = True) -> Styles:
    c = theme.colors

    def color(name: str) -> str:
        return getattr(c, name).pick(dark)

    return Styles(
        text=Style(color=color("text")),
        muted=Style(color=color("text_muted"), italic=True),
        help=Style(color=color("text_muted")),
        border=Style(color=color("border")),
        title=Style(color=color("text"), bold=True),
        label=Style(color=color("text_muted"), bold=True),
        selected=Style(color=color("on_primary"), bgcolor=color("primary"), bold=True),
        normal=Style(color=color("text")),
        description=Style(color=color("text_muted"), italic=True),
        tab_active=Style(color=color("primary"), bold=True),
        tab_inactive=Style(color=color("text_muted")),
        success=Style(color=color("success")),
        error=Style(color=color("error")),
        info=Style(color=color("info")),
        feedback_success=Style(color=color("on_success"), bgcolor=color("success"), bold=True),
        feedback_error=Style(color=color("on_error"), bgcolor=color("error"), bold=True),
        feedback_info=Style(color=color("on_info"), bgcolor=color("info"), bold=True),
        button_active=Style(color=color("on_primary"), bgcolor=color("primary"), bold=True),
        button_danger=Style(color=color("on_error"), bgcolor=color("error"), bold=True),
        button_inactive=Style(color=color("text_muted")),
        input_border=Style(color=color("text_muted")),
        input_focused=Style(color=color("primary")),
    )


def pane(
    content: RenderableType,
    styles: Styles,
    width: int,
    height: Optional[int] = None,
    title: Optional[str] = None,
    border_style: Optional[Style] = None,
) -> Panel:
    return Panel(
        content,
        box=ROUNDED,
        title=title,
        title_align="left",
        border_style=border_style or styles.border,
        width=width,
        height=height,
        padding=(0, 1),
    )


def render_lines(renderable: RenderableType, width: int, height: Optional[int] = None) -> list[Text]:
    """Render ``renderable`` into exactly ``width`` columns, one Text per row."""
    width = max(width, 1)
    options = _console.options.update_width(width)
    if height is not None:
        options = options.update_dimensions(width, max(height, 0))
    rows = _console.render_lines(renderable, options, pad=True)
    lines: list[Text] = []
    for row in rows:
        line = Text(no_wrap=True, end="")
        for segment in row:
            if not segment.control:
                line.append(segment.text, segment.style)
        lines.append(line)
    return lines


def join_horizontal(left: list[Text], right: list[Text], left_width: int, gap: int = 1) -> list[Text]:
    height = max(len(left), len(right))
    joined: list[Text] = []
    for i in range(height):
        line = Text(no_wrap=True, end="")
        line.append_text(_fit(left[i] if i < len(left) else Text(), left_width))
        line.append(" " * gap)
        if i < len(right):
            line.append_text(right[i])
        joined.append(line)
    return joined


def overlay(base: list[Text], layer: list[Text], x: int, y: int) -> list[Text]:
    """Draw ``layer`` on top of ``base`` with its top-left corner at (x, y)."""
    out = list(base)
    for i, line in enumerate(layer):
        row = y + i
        while row >= len(out):
            out.append(Text())
        target = _fit(out[row], max(out[row].cell_len, x))
        left = target[:x]
        right = target[x + line.cell_len:]
        merged = Text(no_wrap=True, end="")
        merged.append_text(left)
        merged.append_text(line)
        merged.append_text(right)
        out[row] = merged
    return out


def _fit(line: Text, width: int) -> Text:
    fitted = line.copy()
    fitted.truncate(width, overflow="crop", pad=True)
    return fitted
