import os
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt5.QtCore import QEvent, Qt
from PyQt5.QtGui import QKeyEvent
from PyQt5.QtWidgets import QApplication, QTextEdit

from xref.registry import SymbolTable
from xref.service import XrefService


class ClickControllerTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._app = QApplication.instance() or QApplication([])

    def setUp(self):
        table = SymbolTable()
        table.define("forward-word", function="Move point forward ARG words.")
        table.define("fill-column", variable="Wrap column.")
        self.service = XrefService(table, show_popups=False)
        self.views = []
        self.service.view_requested.connect(self.views.append)

        self.text = "Call `forward-word' or set the variable `fill-column'."
        self.edit = QTextEdit()
        self.edit.setPlainText(self.text)
        self.controller = self.service.attach(self.edit)
        self.service.scan(self.edit.document())

    def tearDown(self):
        self.service.detach(self.edit)
        self.edit.deleteLater()

    def _press(self, key, modifiers=Qt.NoModifier):
        event = QKeyEvent(QEvent.KeyPress, key, modifiers)
        QApplication.sendEvent(self.edit, event)

    def test_tab_moves_between_annotations(self):
        first = self.text.index("forward-word")
        second = self.text.index("fill-column")

        self._press(Qt.Key_Tab)
        self.assertEqual(self.edit.textCursor().position(), first)
        self._press(Qt.Key_Tab)
        self.assertEqual(self.edit.textCursor().position(), second)
        self._press(Qt.Key_Tab)
        self.assertEqual(self.edit.textCursor().position(), first)
        self._press(Qt.Key_Backtab, Qt.ShiftModifier)
        self.assertEqual(self.edit.textCursor().position(), second)

    def test_return_activates_annotation_under_cursor(self):
        self.assertTrue(self.controller.move_to_next())
        self._press(Qt.Key_Return)
        self.assertEqual([view.title for view in self.views], ["forward-word"])

    def test_return_outside_annotation_is_ignored(self):
        cursor = self.edit.textCursor()
        cursor.setPosition(1)
        self.edit.setTextCursor(cursor)
        self.assertFalse(self.controller.activate_at_cursor())
        self.assertEqual(self.views, [])

    def test_attach_replaces_previous_controller(self):
        replacement = self.service.attach(self.edit)
        self.assertIsNot(replacement, self.controller)
        self.assertEqual(self.service._controllers, [replacement])


if __name__ == "__main__":
    unittest.main()
