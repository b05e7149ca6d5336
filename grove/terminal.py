import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Optional

from .exceptions import TerminalError
from .logging_config import get_logger

logger = get_logger(__name__)

LINUX_TERMINALS = (
    ("gnome-terminal", ["--working-directory"]),
    ("konsole", ["--workdir"]),
    ("xfce4-terminal", ["--working-directory"]),
    ("alacritty", ["--working-directory"]),
    ("kitty", ["--directory"]),
    ("wezterm", ["start", "--cwd"]),
    ("terminator", ["--working-directory"]),
)

MACOS_TERMINALS = (
    ("/Applications/iTerm.app", ["open", "-a", "iTerm"]),
    ("/Applications/Alacritty.app", ["open", "-a", "Alacritty", "--args", "--working-directory"]),
    ("/Applications/kitty.app", ["open", "-a", "kitty", "--args", "--directory"]),
    ("/Applications/WezTerm.app", ["open", "-a", "WezTerm", "--args", "start", "--cwd"]),
)


@dataclass(frozen=True)
class OpenResult:
    success: bool
    method: str
    message: str
    cd_command: str


def shell_quote(path: str) -> str:
    return shlex.quote(path)


def cd_command(path: str) -> str:
    return f"cd {shell_quote(path)}"


class TerminalOpener:
    """Opens a new terminal window in a worktree, or falls back to a cd command."""

    def __init__(self, terminal_cmd: Optional[str] = None, platform: Optional[str] = None) -> None:
        self.terminal_cmd = terminal_cmd
        self.platform = platform or sys.platform

    def open_worktree(self, path: str) -> OpenResult:
        if not os.path.isdir(path):
            raise TerminalError(f"worktree path does not exist: {path}")
        command = cd_command(path)
        argv = self.build_command(path)
        if argv:
            try:
                subprocess.Popen(
                    argv,
                    cwd=path,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
            except OSError as exc:
                logger.warning("failed to launch %s: %s", argv[0], exc)
            else:
                return OpenResult(True, "terminal", f"Opened terminal at {path}", command)
        return OpenResult(False, "cd_command", f"Use this command to switch: {command}", command)

    def build_command(self, path: str) -> Optional[list[str]]:
        if self.terminal_cmd:
            return shlex.split(self.terminal_cmd) + [path]
        if self.platform == "darwin":
            return self._macos_command(path)
        if self.platform.startswith("linux"):
            return self._linux_command(path)
        if self.platform == "win32":
            return self._windows_command(path)
        return None

    def _linux_command(self, path: str) -> Optional[list[str]]:
        if not (os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY")):
            return None
        for name, args in LINUX_TERMINALS:
            if shutil.which(name):
                return [name, *args, path]
        if shutil.which("xterm"):
            return ["xterm", "-e", "bash", "-c", f"{cd_command(path)} && exec bash"]
        return None

    def _macos_command(self, path: str) -> list[str]:
        for app, args in MACOS_TERMINALS:
            if os.path.exists(app):
                if args[2] == "iTerm":
                    script = (
                        'tell application "iTerm"\n'
                        "create window with default profile\n"
                        f'tell current session of current window to write text "{cd_command(path)} && clear"\n'
                        "end tell"
                    )
                    return ["osascript", "-e", script]
                return [*args, path]
        script = f'tell application "Terminal"\ndo script "{cd_command(path)} && clear"\nactivate\nend tell'
        return ["osascript", "-e", script]

    def _windows_command(self, path: str) -> list[str]:
        if shutil.which("wt.exe"):
            return ["wt.exe", "-d", path]
        if shutil.which("pwsh.exe"):
            return ["pwsh.exe", "-NoExit", "-Command", "Set-Location", path]
        return ["cmd.exe", "/K", "cd", "/d", path]
