from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import QEvent, QObject, QPoint, Qt
from PyQt5.QtWidgets import QWidget

from util.cursor_manager import set_dynamic_clickable
from xref.annotations import Annotation, annotation_at, next_annotation, previous_annotation
from xref.dispatcher import ActivationDispatcher


class XrefClickController(QObject):
    """Binds a text widget's annotations to mouse and keyboard activation.

    Left press and release on the same annotation activates it. Tab and
    Shift+Tab move the text cursor between annotations; Return activates the
    annotation under the text cursor.
    """

    def __init__(self, text_widget: QWidget, dispatcher: ActivationDispatcher) -> None:
        super().__init__(text_widget)
        self._widget = text_widget
        self._dispatcher = dispatcher
        self._pressed: Optional[Annotation] = None
        self._hover_clickable = False

        viewport = getattr(self._widget, "viewport", lambda: self._widget)()
        self._viewport = viewport
        viewport.installEventFilter(self)
        if viewport is not self._widget:
            self._widget.installEventFilter(self)
        viewport.setAttribute(Qt.WA_Hover, True)
        viewport.setMouseTracking(True)
        self._widget.destroyed.connect(self._on_widget_destroyed)

    def widget(self) -> QWidget:
        return self._widget

    def shutdown(self) -> None:
        if self._viewport is not None:
            try:
                self._viewport.removeEventFilter(self)
                self._widget.removeEventFilter(self)
                set_dynamic_clickable(self._viewport, False)
            except RuntimeError:
                pass
        self._viewport = None
        self.deleteLater()

    # ------------------------------------------------------------------
    # Activation and navigation
    # ------------------------------------------------------------------
    def activate(self, annotation: Annotation) -> None:
        self._dispatcher.activate(annotation)

    def activate_at_cursor(self) -> bool:
        position = self._widget.textCursor().position()
        document = self._widget.document()
        annotation = annotation_at(document, position)
        if annotation is None and position > 0:
            annotation = annotation_at(document, position - 1)
        if annotation is None:
            return False
        self.activate(annotation)
        return True

    def move_to_next(self) -> bool:
        annotation = next_annotation(self._widget.document(), self._widget.textCursor().position())
        return self._move_to(annotation)

    def move_to_previous(self) -> bool:
        annotation = previous_annotation(self._widget.document(), self._widget.textCursor().position())
        return self._move_to(annotation)

    def _move_to(self, annotation: Optional[Annotation]) -> bool:
        if annotation is None:
            return False
        cursor = self._widget.textCursor()
        cursor.setPosition(annotation.start)
        self._widget.setTextCursor(cursor)
        self._widget.ensureCursorVisible()
        return True

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802
        etype = event.type()
        if obj is self._viewport and self._viewport is not None:
            if etype == QEvent.MouseButtonPress:
                if event.button() == Qt.LeftButton:
                    self._pressed = self._annotation_at_point(event.pos())
                else:
                    self._pressed = None
            elif etype == QEvent.MouseButtonRelease and event.button() == Qt.LeftButton:
                pressed, self._pressed = self._pressed, None
                released = self._annotation_at_point(event.pos())
                if pressed is not None and released == pressed:
                    self.activate(released)
                    return True
            elif etype in (QEvent.HoverEnter, QEvent.HoverMove, QEvent.MouseMove):
                self._update_hover(event.pos())
            elif etype == QEvent.HoverLeave:
                self._update_hover(None)
        elif obj is self._widget and etype == QEvent.KeyPress:
            key = event.key()
            if key == Qt.Key_Tab and not event.modifiers() & (Qt.ControlModifier | Qt.AltModifier):
                if self.move_to_next():
                    return True
            elif key == Qt.Key_Backtab:
                if self.move_to_previous():
                    return True
            elif key in (Qt.Key_Return, Qt.Key_Enter):
                if self.activate_at_cursor():
                    return True
        return super().eventFilter(obj, event)

    def _annotation_at_point(self, pos: Optional[QPoint]) -> Optional[Annotation]:
        if pos is None or not hasattr(self._widget, "cursorForPosition"):
            return None
        if hasattr(pos, "toPoint"):
            pos = pos.toPoint()
        anchor_at = getattr(self._widget, "anchorAt", None)
        if callable(anchor_at) and not anchor_at(pos):
            return None
        position = self._widget.cursorForPosition(pos).position()
        document = self._widget.document()
        # cursorForPosition snaps to the nearest gap; the hit may be either side.
        return annotation_at(document, position) or annotation_at(document, position - 1)

    def _update_hover(self, pos: Optional[QPoint]) -> None:
        is_clickable = self._annotation_at_point(pos) is not None
        if is_clickable != self._hover_clickable and self._viewport is not None:
            self._hover_clickable = is_clickable
            set_dynamic_clickable(self._viewport, is_clickable)

    def _on_widget_destroyed(self) -> None:
        self._viewport = None
        self._pressed = None
