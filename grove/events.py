"""Input events delivered to the session and intents emitted by surfaces."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .models import Action, ViewItem

SPECIAL_CHARACTERS = {"space": " "}
SPECIAL_NAMES = {" ": "space"}


@dataclass(frozen=True)
class Key:
    """A key press. ``name`` uses Textual's key names; ``char`` is the printable text, if any."""

    name: str
    char: Optional[str] = None

    @classmethod
    def parse(cls, name: str) -> "Key":
        if len(name) == 1:
            return cls(SPECIAL_NAMES.get(name, name), name)
        return cls(name, SPECIAL_CHARACTERS.get(name))

    @property
    def printable(self) -> bool:
        return self.char is not None and len(self.char) == 1 and self.char.isprintable()


@dataclass(frozen=True)
class Mouse:
    x: int
    y: int
    button: str = "left"


WHEEL_UP = "wheel_up"
WHEEL_DOWN = "wheel_down"


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class ClearFeedback:
    generation: int


Event = Union[Key, Mouse, Resize, ClearFeedback]


# Confirmation subjects


@dataclass(frozen=True)
class DeleteWorktree:
    path: str
    title: str


@dataclass(frozen=True)
class PruneWorktrees:
    pass


ConfirmSubject = Union[DeleteWorktree, PruneWorktrees]


# Intents


@dataclass(frozen=True)
class ActionChosen:
    action: Action
    item: Optional[ViewItem]


@dataclass(frozen=True)
class ConfirmResolved:
    confirmed: bool
    force: bool = False
    subject: Optional[ConfirmSubject] = None


@dataclass(frozen=True)
class CreateFormResult:
    branch: str
    path: str
    create_branch: bool


@dataclass(frozen=True)
class FormSubmitted:
    result: CreateFormResult


@dataclass(frozen=True)
class Cancelled:
    pass


Intent = Union[ActionChosen, ConfirmResolved, FormSubmitted, Cancelled]
