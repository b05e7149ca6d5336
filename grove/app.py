from typing import Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Static

from .config import AppConfig
from .events import WHEEL_DOWN, WHEEL_UP, ClearFeedback, Event, Key, Mouse, Resize
from .git_service import GitService
from .logging_config import get_logger
from .session import Session
from .terminal import TerminalOpener

logger = get_logger(__name__)


class GroveApp(App[str]):
    """Textual host for a grove session.

    The session owns all state and produces the whole frame; this app only
    forwards terminal events to it and paints what it renders.
    """

    TITLE = "grove"
    CSS = """
    Screen { overflow: hidden; }
    #frame { width: 100%; height: 100%; }
    """
    # Keys Textual would otherwise consume for focus handling
    BINDINGS = [
        Binding("ctrl+c", "forward('ctrl+c')", "Quit", show=False, priority=True),
        Binding("tab", "forward('tab')", show=False, priority=True),
        Binding("shift+tab", "forward('shift+tab')", show=False, priority=True),
        Binding("escape", "forward('escape')", show=False, priority=True),
    ]

    def __init__(
        self,
        git_service: Optional[GitService] = None,
        config: Optional[AppConfig] = None,
        opener: Optional[TerminalOpener] = None,
    ) -> None:
        super().__init__()
        self.config = config or AppConfig()
        self.git_service = git_service or GitService()
        self.session = Session(
            self.git_service,
            config=self.config,
            opener=opener,
            scheduler=self._schedule,
        )

    def compose(self) -> ComposeResult:
        yield Static(id="frame")

    def on_mount(self) -> None:
        self.session.refresh()
        self._forward(Resize(self.size.width, self.size.height))

    def _schedule(self, delay: float, event: ClearFeedback) -> None:
        self.set_timer(delay, lambda: self._forward(event))

    def _forward(self, event: Event) -> None:
        self.session.dispatch(event)
        if self.session.quitting:
            logger.debug("session ended (target=%s)", self.session.target_path)
            self.exit(result=self.session.target_path)
            return
        try:
            frame = self.query_one("#frame", Static)
        except NoMatches:
            return
        frame.update(self.session.render())

    def action_forward(self, key: str) -> None:
        self._forward(Key.parse(key))

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self._forward(Key(event.key, event.character))

    def on_click(self, event: events.Click) -> None:
        self._forward(Mouse(event.screen_x, event.screen_y))

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self._forward(Mouse(event.screen_x, event.screen_y, WHEEL_DOWN))

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self._forward(Mouse(event.screen_x, event.screen_y, WHEEL_UP))

    def on_resize(self, event: events.Resize) -> None:
        self._forward(Resize(event.size.width, event.size.height))
