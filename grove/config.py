from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional
import os
import yaml

from .exceptions import ConfigError


def default_config_path() -> Path:
    return (
        Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()
        / "grove"
        / "config.yaml"
    )


def _coerce_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in {"1", "true", "yes", "y", "on"}:
            return True
        if text in {"0", "false", "no", "n", "off"}:
            return False
    return default


def _coerce_float(value: object, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            return float(text)
        except ValueError:
            return default
    return default


def _coerce_str(value: object) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    return None


@dataclass(frozen=True)
class AdaptiveColor:
    light: str
    dark: str

    def pick(self, dark: bool) -> str:
        return self.dark if dark else self.light


@dataclass(frozen=True)
class ThemeColors:
    primary: AdaptiveColor = AdaptiveColor("#874BFD", "#7D56F4")
    on_primary: AdaptiveColor = AdaptiveColor("#FFFFFF", "#FFFFFF")
    text: AdaptiveColor = AdaptiveColor("#333333", "#CCCCCC")
    text_muted: AdaptiveColor = AdaptiveColor("#666666", "#888888")
    border: AdaptiveColor = AdaptiveColor("#874BFD", "#7D56F4")
    success: AdaptiveColor = AdaptiveColor("#2E7D32", "#4CAF50")
    error: AdaptiveColor = AdaptiveColor("#C62828", "#EF5350")
    info: AdaptiveColor = AdaptiveColor("#1565C0", "#42A5F5")
    on_success: AdaptiveColor = AdaptiveColor("#FFFFFF", "#FFFFFF")
    on_error: AdaptiveColor = AdaptiveColor("#FFFFFF", "#FFFFFF")
    on_info: AdaptiveColor = AdaptiveColor("#FFFFFF", "#FFFFFF")


@dataclass(frozen=True)
class Theme:
    colors: ThemeColors = field(default_factory=ThemeColors)


@dataclass(frozen=True)
class AppConfig:
    worktree_dir: str | None = None
    jump_on_create: bool = True
    feedback_seconds: float = 3.0
    dark: bool = True
    terminal: str | None = None
    theme: Theme = field(default_factory=Theme)
    path: str | None = None


def _merge_color(default: AdaptiveColor, value: object) -> AdaptiveColor:
    if not isinstance(value, dict):
        return default
    light = _coerce_str(value.get("light")) or default.light
    dark = _coerce_str(value.get("dark")) or default.dark
    return AdaptiveColor(light, dark)


def _parse_theme(data: object) -> Theme:
    if not isinstance(data, dict):
        return Theme()
    colors = data.get("colors")
    if not isinstance(colors, dict):
        return Theme()
    defaults = ThemeColors()
    merged = {
        f.name: _merge_color(getattr(defaults, f.name), colors.get(f.name))
        for f in fields(ThemeColors)
    }
    return Theme(colors=ThemeColors(**merged))


def _parse_config(data: object) -> AppConfig:
    if not isinstance(data, dict):
        return AppConfig()
    feedback_seconds = _coerce_float(data.get("feedback_seconds"), 3.0)
    if feedback_seconds < 0:
        feedback_seconds = 0.0
    appearance = _coerce_str(data.get("appearance")) or "dark"
    return AppConfig(
        worktree_dir=_coerce_str(data.get("worktree_dir")),
        jump_on_create=_coerce_bool(data.get("jump_on_create"), True),
        feedback_seconds=feedback_seconds,
        dark=appearance.lower() != "light",
        terminal=_coerce_str(data.get("terminal")),
        theme=_parse_theme(data.get("theme")),
    )


def load_config(config_path: str | None = None) -> tuple[AppConfig, ConfigError | None]:
    """Load the configuration file.

    A missing file yields the defaults and no error. An unreadable or
    malformed file yields the defaults together with the error.
    """
    path = Path(config_path).expanduser() if config_path else default_config_path()
    if not path.exists():
        return AppConfig(), None
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        return AppConfig(), ConfigError(str(path), f"reading config file: {exc}")
    except yaml.YAMLError as exc:
        return AppConfig(), ConfigError(str(path), f"parsing config file: {exc}")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return AppConfig(), ConfigError(str(path), "expected a mapping at the top level")
    return replace(_parse_config(data), path=str(path)), None


SAMPLE_CONFIG = """\
# grove configuration
# Location: ~/.config/grove/config.yaml
# Changes require an application restart to take effect.

# Directory used to resolve relative worktree paths in the create form.
# worktree_dir: ~/.local/share/worktrees

# Leave grove and print the new path after creating a worktree
# (use with a shell wrapper that cds into it).
jump_on_create: true

# Seconds a status message stays visible.
feedback_seconds: 3

# "dark" or "light": which side of each theme color to use.
appearance: dark

# Terminal command used by the Open action (auto-detected when unset).
# terminal: alacritty

theme:
  colors:
    # Accent color for selection and active states
    primary:
      light: "#874BFD"
      dark: "#7D56F4"
    on_primary:
      light: "#FFFFFF"
      dark: "#FFFFFF"
    text:
      light: "#333333"
      dark: "#CCCCCC"
    text_muted:
      light: "#666666"
      dark: "#888888"
    border:
      light: "#874BFD"
      dark: "#7D56F4"
    success:
      light: "#2E7D32"
      dark: "#4CAF50"
    on_success:
      light: "#FFFFFF"
      dark: "#FFFFFF"
    error:
      light: "#C62828"
      dark: "#EF5350"
    on_error:
      light: "#FFFFFF"
      dark: "#FFFFFF"
    info:
      light: "#1565C0"
      dark: "#42A5F5"
    on_info:
      light: "#FFFFFF"
      dark: "#FFFFFF"
"""


def write_sample_config(config_path: str | None = None) -> Path:
    path = Path(config_path).expanduser() if config_path else default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path
