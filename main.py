import sys
import logging
import os

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QTextDocument
from PyQt5.QtWidgets import QApplication, QMainWindow, QTextEdit

from settings.xref_settings import load_settings
from util.cursor_manager import install_cursor_manager
from xref.errors import XrefError
from xref.registry import SymbolTable
from xref.service import XrefService

USAGE = "usage: main.py <text-file> [symbols.json]"


def exception_hook(exctype, value, traceback):
    logging.error("Unhandled exception", exc_info=(exctype, value, traceback))
    sys.__excepthook__(exctype, value, traceback)


class HelpWindow(QMainWindow):
    """Read-only text view whose quoted symbol references are live links."""

    def __init__(self, service: XrefService, title: str = "Help") -> None:
        super().__init__()
        self.setWindowTitle(title)
        self.service = service
        self.viewer = QTextEdit(self)
        self.viewer.setReadOnly(True)
        self.viewer.setTextInteractionFlags(Qt.TextSelectableByMouse | Qt.TextSelectableByKeyboard)
        self.setCentralWidget(self.viewer)
        self.service.attach(self.viewer)
        self.service.message_posted.connect(self._show_message)
        self.resize(720, 520)

    def document(self) -> QTextDocument:
        return self.viewer.document()

    def load_text(self, text: str) -> None:
        self.viewer.setPlainText(text)
        self.document().setModified(False)
        self.service.scan(self.document())

    def _show_message(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=os.environ.get("XREF_LOG_LEVEL", "INFO"))
    sys.excepthook = exception_hook
    if not argv:
        print(USAGE)
        return 2

    text_path = argv[0]
    try:
        with open(text_path, "r", encoding="utf-8") as handle:
            text = handle.read()
        registry = SymbolTable.from_json(argv[1]) if len(argv) > 1 else SymbolTable()
        settings = load_settings()
    except (OSError, XrefError) as exc:
        logging.error("%s", exc)
        return 1

    app = QApplication.instance() or QApplication(sys.argv[:1])
    install_cursor_manager(app)
    service = XrefService(registry, settings)
    window = HelpWindow(service, title=os.path.basename(text_path))
    window.load_text(text)
    window.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
