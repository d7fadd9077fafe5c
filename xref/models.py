from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReferenceCategory(Enum):
    """What a reference points at, and therefore how it is activated."""

    VARIABLE = "variable"
    FUNCTION = "function"
    FACE = "face"
    SYMBOL = "symbol"
    DEFINITION_SOURCE = "definition_source"
    UNLINKED = "unlinked"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def is_linkable(self) -> bool:
        return self is not ReferenceCategory.UNLINKED


@dataclass(frozen=True)
class DetailView:
    """Content produced when an annotation is activated."""

    title: str
    category: str
    body: str = ""
    file_path: Optional[str] = None
    offset: Optional[int] = None


@dataclass(frozen=True)
class ActivationResult:
    """What a category handler produced: a view, a message for the user, or both."""

    view: Optional[DetailView] = None
    message: Optional[str] = None
