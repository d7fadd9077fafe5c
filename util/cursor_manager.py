from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import QEvent, QObject, Qt
from PyQt5.QtGui import QCursor
from PyQt5.QtWidgets import QWidget

_HAND_CURSOR_PROPERTY = "_xref_hand_cursor_applied"
_ORIGINAL_CURSOR_PROPERTY = "_xref_original_cursor"
_CLICKABLE_PROPERTY = "xrefClickable"


class CursorManager(QObject):
    """Shows a pointing hand while the mouse is over something clickable.

    Widgets opt in through the ``xrefClickable`` dynamic property, which
    :func:`set_dynamic_clickable` toggles as the mouse moves over links.
    """

    _instance: Optional["CursorManager"] = None

    def __init__(self, app) -> None:
        super().__init__(app)
        self._app = app
        self._app.installEventFilter(self)

    @classmethod
    def install(cls, app) -> "CursorManager":
        if cls._instance is None:
            cls._instance = cls(app)
        return cls._instance

    def eventFilter(self, watched, event):  # noqa: N802
        if isinstance(watched, QWidget):
            etype = event.type()
            if etype in (QEvent.Leave, QEvent.HoverLeave):
                self._restore_cursor(watched)
            elif etype == QEvent.EnabledChange and not watched.isEnabled():
                self._restore_cursor(watched)
        return super().eventFilter(watched, event)

    def set_widget_clickable(self, widget: QWidget, is_clickable: bool) -> None:
        widget.setProperty(_CLICKABLE_PROPERTY, bool(is_clickable))
        if is_clickable and widget.isEnabled():
            self._apply_hand_cursor(widget)
        else:
            self._restore_cursor(widget)

    def _apply_hand_cursor(self, widget: QWidget) -> None:
        if widget.property(_HAND_CURSOR_PROPERTY):
            return
        if widget.testAttribute(Qt.WA_SetCursor):
            widget.setProperty(_ORIGINAL_CURSOR_PROPERTY, widget.cursor())
        else:
            widget.setProperty(_ORIGINAL_CURSOR_PROPERTY, None)
        widget.setCursor(Qt.PointingHandCursor)
        widget.setProperty(_HAND_CURSOR_PROPERTY, True)

    def _restore_cursor(self, widget: QWidget) -> None:
        if not widget.property(_HAND_CURSOR_PROPERTY):
            return
        original = widget.property(_ORIGINAL_CURSOR_PROPERTY)
        if isinstance(original, QCursor):
            widget.setCursor(original)
        else:
            widget.unsetCursor()
        widget.setProperty(_HAND_CURSOR_PROPERTY, False)
        widget.setProperty(_ORIGINAL_CURSOR_PROPERTY, None)


def install_cursor_manager(app) -> CursorManager:
    """Convenience helper mirroring :meth:`CursorManager.install`."""
    return CursorManager.install(app)


def set_dynamic_clickable(widget: QWidget, is_clickable: bool) -> None:
    manager = CursorManager._instance
    if manager is not None:
        manager.set_widget_clickable(widget, is_clickable)
