from __future__ import annotations

from contextlib import suppress
from typing import List, Optional

from PyQt5.QtCore import QObject, QPoint, pyqtSignal
from PyQt5.QtGui import QCursor, QTextDocument
from PyQt5.QtWidgets import QApplication, QWidget

from settings.xref_settings import XrefSettings
from xref.annotations import annotation_at
from xref.categories import build_config
from xref.click_controller import XrefClickController
from xref.detail_popup import DetailPopup
from xref.dispatcher import ActivationDispatcher
from xref.models import ActivationResult, DetailView
from xref.registry import DescriberRegistry, SymbolRegistry
from xref.scanner import XrefScanner


class XrefService(QObject):
    """Coordinates scanning, activation and detail popups for a host window.

    The configuration is built once here and shared by the scanner and the
    dispatcher. Hosts that render views themselves pass ``show_popups=False``
    and listen to ``view_requested``.
    """

    message_posted = pyqtSignal(str)
    view_requested = pyqtSignal(object)
    document_scanned = pyqtSignal(object, int)

    def __init__(
        self,
        registry: SymbolRegistry,
        settings: Optional[XrefSettings] = None,
        locator=None,
        describers: Optional[DescriberRegistry] = None,
        parent: Optional[QObject] = None,
        show_popups: bool = True,
    ) -> None:
        super().__init__(parent)
        self.registry = registry
        self.settings = settings or XrefSettings()
        self.config = build_config(registry, self.settings, locator, describers)
        self._scanner = XrefScanner(self.config, registry, self.settings)
        self.dispatcher = ActivationDispatcher(self.config, self)
        self.dispatcher.message_posted.connect(self.message_posted)
        self.dispatcher.view_requested.connect(self._on_view_requested)
        self._controllers: List[XrefClickController] = []
        self._show_popups = show_popups
        self._popup: Optional[DetailPopup] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def scan(self, document: QTextDocument) -> None:
        self._scanner.scan(document)
        self.document_scanned.emit(document, self._scanner.last_created)

    def attach(self, text_widget: QWidget) -> XrefClickController:
        self.detach(text_widget)
        controller = XrefClickController(text_widget, self.dispatcher)
        self._controllers.append(controller)
        text_widget.destroyed.connect(lambda *_args, c=controller: self._forget(c))
        return controller

    def detach(self, text_widget: QWidget) -> None:
        for controller in list(self._controllers):
            if controller.widget() is text_widget:
                self._controllers.remove(controller)
                controller.shutdown()

    def activate_at(self, document: QTextDocument, position: int) -> Optional[ActivationResult]:
        annotation = annotation_at(document, position)
        if annotation is None:
            return None
        return self.dispatcher.activate(annotation)

    def show_view(self, view: DetailView) -> DetailPopup:
        self.close_popup()
        popup = DetailPopup(None, self.settings.popup_width, self.settings.popup_max_height)
        popup.set_view(view)
        popup.destroyed.connect(lambda *_args, p=popup: self._on_popup_destroyed(p))
        self._popup = popup
        popup.move(self._popup_position(popup))
        popup.show()
        popup.raise_()
        popup.activateWindow()
        return popup

    def close_popup(self) -> None:
        popup, self._popup = self._popup, None
        if popup is not None:
            with suppress(RuntimeError):
                popup.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _on_view_requested(self, view: DetailView) -> None:
        self.view_requested.emit(view)
        if self._show_popups:
            self.show_view(view)

    def _on_popup_destroyed(self, popup: DetailPopup) -> None:
        if self._popup is popup:
            self._popup = None

    def _forget(self, controller: XrefClickController) -> None:
        if controller in self._controllers:
            self._controllers.remove(controller)

    @staticmethod
    def _popup_position(popup: DetailPopup) -> QPoint:
        target = QCursor.pos() + QPoint(0, popup.fontMetrics().height())
        screen = QApplication.screenAt(target) or QApplication.primaryScreen()
        if screen is None:
            return target
        geo = screen.availableGeometry()
        size = popup.sizeHint()
        x = target.x()
        y = target.y()
        if x + size.width() > geo.right():
            x = max(geo.left(), geo.right() - size.width())
        # keep clear of the bottom edge
        bottom_limit = geo.bottom() - 30
        if y + size.height() > bottom_limit:
            y = max(geo.top(), bottom_limit - size.height())
        return QPoint(x, y)
