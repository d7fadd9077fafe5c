import os
import tempfile
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt5.QtGui import QTextDocument
from PyQt5.QtWidgets import QApplication

from xref.annotations import Annotation, annotations_in
from xref.categories import DEFINITION_FILE_MISSING, DEFINITION_LOCATION_MISSING, build_config
from xref.dispatcher import ActivationDispatcher
from xref.models import ReferenceCategory
from xref.registry import DescriberRegistry, SymbolTable
from xref.service import XrefService


class DispatcherTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._app = QApplication.instance() or QApplication([])

    def setUp(self):
        self.table = SymbolTable()
        self.table.define("forward-word", function="Move point forward ARG words.")
        self.table.define("fill-column", variable="Wrap column.")
        self.table.define("baz")
        self.messages = []
        self.views = []
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _dispatcher(self, **kwargs):
        dispatcher = ActivationDispatcher(build_config(self.table, **kwargs))
        dispatcher.message_posted.connect(self.messages.append)
        dispatcher.view_requested.connect(self.views.append)
        return dispatcher

    def test_function_activation_shows_description(self):
        result = self._dispatcher().activate(Annotation(0, 12, ReferenceCategory.FUNCTION, "forward-word"))
        self.assertEqual(result.view.title, "forward-word")
        self.assertEqual(result.view.category, "Function")
        self.assertEqual(result.view.body, "Move point forward ARG words.")
        self.assertEqual(self.views, [result.view])
        self.assertEqual(self.messages, [])

    def test_symbol_activation_merges_describers(self):
        self.table.define("both", function="As a function.", variable="As a variable.")
        result = self._dispatcher().activate(Annotation(0, 4, ReferenceCategory.SYMBOL, "both"))
        self.assertIn("Function: As a function.", result.view.body)
        self.assertIn("Variable: As a variable.", result.view.body)

    def test_missing_defining_file(self):
        result = self._dispatcher().activate(Annotation(0, 3, ReferenceCategory.DEFINITION_SOURCE, "baz"))
        self.assertIsNone(result.view)
        self.assertEqual(self.messages, [DEFINITION_FILE_MISSING])
        self.assertEqual(self.views, [])

    def test_defining_file_without_location(self):
        path = self._write_source("(provide 'baz-mode)\n")
        self.table.define("baz", source_file=path)
        result = self._dispatcher().activate(Annotation(0, 3, ReferenceCategory.DEFINITION_SOURCE, "baz"))
        self.assertEqual(result.view.file_path, path)
        self.assertIsNone(result.view.offset)
        self.assertEqual(self.messages, [DEFINITION_LOCATION_MISSING])
        self.assertEqual(self.views, [result.view])

    def test_defining_file_with_location(self):
        source = ";; header\n(defun baz (x)\n  \"Doc.\"\n  x)\n"
        path = self._write_source(source)
        self.table.define("baz", source_file=path)
        result = self._dispatcher().activate(Annotation(0, 3, ReferenceCategory.DEFINITION_SOURCE, "baz"))
        self.assertEqual(result.view.offset, source.index("baz"))
        self.assertTrue(result.view.body.startswith("(defun baz"))
        self.assertEqual(self.messages, [])

    def test_failing_handler_reports_message(self):
        describers = DescriberRegistry()

        def explode(name):
            raise RuntimeError("describe failed")

        describers.register("broken", lambda name: True, explode)
        result = self._dispatcher(describers=describers).activate(
            Annotation(0, 12, ReferenceCategory.SYMBOL, "forward-word")
        )
        self.assertIsNone(result.view)
        self.assertEqual(self.messages, ["Unable to describe forward-word"])

    def _write_source(self, text):
        path = os.path.join(self._tmp.name, "baz.el")
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(text)
        return path


class ServiceActivationTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._app = QApplication.instance() or QApplication([])

    def test_source_reference_without_file_end_to_end(self):
        table = SymbolTable()
        table.define("baz")
        service = XrefService(table, show_popups=False)
        messages, views = [], []
        service.message_posted.connect(messages.append)
        service.view_requested.connect(views.append)

        text = "the source of `baz'."
        document = QTextDocument(text)
        service.scan(document)
        annotations = annotations_in(document)
        self.assertEqual([a.category for a in annotations], [ReferenceCategory.DEFINITION_SOURCE])

        service.activate_at(document, text.index("baz"))
        self.assertEqual(messages, ["Unable to find defining file"])
        self.assertEqual(views, [])

    def test_activate_outside_annotation_does_nothing(self):
        service = XrefService(SymbolTable(), show_popups=False)
        document = QTextDocument("plain text")
        service.scan(document)
        self.assertIsNone(service.activate_at(document, 2))

    def test_show_view_opens_popup(self):
        table = SymbolTable()
        table.define("forward-word", function="Move point forward ARG words.")
        service = XrefService(table)
        document = QTextDocument("See function `forward-word'.")
        service.scan(document)
        service.activate_at(document, document.toPlainText().index("forward"))
        popup = service._popup
        self.assertIsNotNone(popup)
        self.assertEqual(popup.view().title, "forward-word")
        self.assertIn("Move point forward", popup.body_text())
        service.close_popup()


if __name__ == "__main__":
    unittest.main()
