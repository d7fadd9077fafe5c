from __future__ import annotations

from typing import List, Optional

from PyQt5.QtCore import QObject, Qt
from PyQt5.QtGui import QFontMetrics, QTextLayout
from PyQt5.QtWidgets import QLabel, QVBoxLayout, QWidget

from xref.models import DetailView


class DetailPopup(QWidget):
    """Popup showing the category, title and body of a :class:`DetailView`."""

    def __init__(self, parent: Optional[QObject] = None, width: int = 350, max_height: int = 250) -> None:
        super().__init__(parent, Qt.FramelessWindowHint | Qt.WindowStaysOnTopHint | Qt.Tool)
        self.setAttribute(Qt.WA_DeleteOnClose)
        self.setFocusPolicy(Qt.StrongFocus)
        self._view: Optional[DetailView] = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 12)
        layout.setSpacing(6)
        self._layout = layout

        self._category_label = QLabel()
        cat_font = self._category_label.font()
        cat_font.setPointSize(max(cat_font.pointSize() - 2, 8))
        self._category_label.setFont(cat_font)
        self._category_label.setStyleSheet("color: #666; text-transform: uppercase;")

        self._title_label = QLabel()
        title_font = self._title_label.font()
        title_font.setPointSize(title_font.pointSize() + 3)
        title_font.setBold(True)
        self._title_label.setFont(title_font)

        self._body_label = QLabel()
        self._body_label.setWordWrap(True)
        self._body_label.setTextInteractionFlags(Qt.TextSelectableByMouse)

        layout.addWidget(self._category_label)
        layout.addWidget(self._title_label)
        layout.addWidget(self._body_label)

        self.setFixedWidth(width)
        self.setMaximumHeight(max_height)
        self._full_body: str = ""

    def view(self) -> Optional[DetailView]:
        return self._view

    def set_view(self, view: DetailView) -> None:
        self._view = view
        self._category_label.setText(view.category)
        self._title_label.setText(view.title)
        self._full_body = (view.body or "").strip() or "No description available."
        self._update_body_elided()
        self.adjustSize()

    def body_text(self) -> str:
        return self._body_label.text()

    def mousePressEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.LeftButton:
            self.close()
            return
        super().mousePressEvent(event)

    def keyPressEvent(self, event) -> None:  # noqa: N802
        if event.key() in (Qt.Key_Escape, Qt.Key_Q):
            self.close()
            return
        super().keyPressEvent(event)

    def resizeEvent(self, event) -> None:  # noqa: N802
        self._update_body_elided()
        super().resizeEvent(event)

    def _update_body_elided(self) -> None:
        """Fit the body into the space left under the title, eliding the last line."""
        text = self._full_body
        if not text:
            return
        margins = self._layout.contentsMargins()
        available_width = max(10, self.width() - margins.left() - margins.right())
        consumed = (
            margins.top()
            + margins.bottom()
            + self._category_label.sizeHint().height()
            + self._title_label.sizeHint().height()
            + 2 * self._layout.spacing()
        )
        available_height = max(10, self.maximumHeight() - consumed)

        font = self._body_label.font()
        metrics = QFontMetrics(font)
        line_height = metrics.lineSpacing() or metrics.height() or 14
        max_lines = max(1, int(available_height // line_height))

        lines: List[str] = []
        for paragraph in text.split("\n"):
            layout = QTextLayout(paragraph, font)
            layout.beginLayout()
            while True:
                line = layout.createLine()
                if not line.isValid():
                    break
                line.setLineWidth(available_width)
                lines.append(paragraph[line.textStart(): line.textStart() + line.textLength()].rstrip())
            layout.endLayout()
            if not paragraph:
                lines.append("")

        if len(lines) <= max_lines:
            self._body_label.setText(text)
            return
        visible = lines[:max_lines]
        visible[-1] = metrics.elidedText(visible[-1] + " ...", Qt.ElideRight, available_width)
        self._body_label.setText("\n".join(visible))
