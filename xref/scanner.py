from __future__ import annotations

import logging
from bisect import bisect_left
from contextlib import contextmanager
from typing import Iterator, List, Optional

from PyQt5 import sip
from PyQt5.QtGui import QTextDocument

from settings.xref_settings import XrefSettings
from xref.annotations import Annotation, AnnotationBuilder
from xref.categories import XrefConfig
from xref.classifier import ReferenceClassifier
from xref.errors import ScanInProgressError
from xref.patterns import TEXT_SYNTAX, MatchRecord, ReferenceMatcher, SyntaxTable
from xref.registry import SymbolRegistry

logger = logging.getLogger(__name__)

_SYNTAX_PROPERTY = "xrefSyntaxTable"
_SCAN_ACTIVE_PROPERTY = "xrefScanActive"


def syntax_table_of(document: QTextDocument) -> SyntaxTable:
    value = document.property(_SYNTAX_PROPERTY)
    return value if isinstance(value, SyntaxTable) else TEXT_SYNTAX


def set_syntax_table(document: QTextDocument, syntax: SyntaxTable) -> None:
    document.setProperty(_SYNTAX_PROPERTY, syntax)


def _astral_indices(text: str) -> List[int]:
    return [index for index, ch in enumerate(text) if ord(ch) > 0xFFFF]


def document_position(astral: List[int], index: int) -> int:
    """Map a ``str`` index to a document position (UTF-16 code units).

    ``astral`` lists the indices of characters outside the BMP, each of which
    takes two positions in the document.
    """
    return index + bisect_left(astral, index)


def _is_deleted(document: QTextDocument) -> bool:
    try:
        return sip.isdeleted(document)
    except RuntimeError:
        return True


@contextmanager
def scan_session(document: QTextDocument, syntax: SyntaxTable) -> Iterator[QTextDocument]:
    """Hold ``document`` in symbol syntax for the duration of a scan.

    On every exit path the previous syntax table comes back first, then the
    modified flag the document had on entry. Undo recording is off for the
    duration, so format changes made inside the block cannot be undone; like
    ``QTextDocument.setPlainText``, this resets the undo history. A document
    deleted while the block ran is left alone.
    """
    if document.property(_SCAN_ACTIVE_PROPERTY):
        raise ScanInProgressError("document is already being scanned")
    was_modified = document.isModified()
    undo_enabled = document.isUndoRedoEnabled()
    previous = syntax_table_of(document)
    document.setProperty(_SCAN_ACTIVE_PROPERTY, True)
    set_syntax_table(document, syntax)
    document.setUndoRedoEnabled(False)
    try:
        yield document
    finally:
        if _is_deleted(document):
            logger.debug("Document deleted during scan; nothing to restore")
        else:
            try:
                set_syntax_table(document, previous)
            finally:
                document.setUndoRedoEnabled(undo_enabled)
                document.setModified(was_modified)
                document.setProperty(_SCAN_ACTIVE_PROPERTY, False)


class XrefScanner:
    """Runs one full annotation pass over a document."""

    def __init__(
        self,
        config: XrefConfig,
        registry: SymbolRegistry,
        settings: Optional[XrefSettings] = None,
    ) -> None:
        self._config = config
        self._classifier = ReferenceClassifier(config, registry)
        self._builder = AnnotationBuilder(config, settings)
        self.last_created = 0

    def scan(self, document: QTextDocument) -> None:
        created = 0
        with scan_session(document, self._config.syntax):
            matcher = ReferenceMatcher(syntax_table_of(document))
            text = document.toPlainText()
            astral = _astral_indices(text)
            for record in matcher.iter_matches(text):
                try:
                    if self._link(document, record, astral) is not None:
                        created += 1
                except Exception as exc:
                    logger.info("Skipping reference %r at %d: %s", record.symbol_text, record.start, exc)
        self.last_created = created
        logger.debug("Scan placed %d annotation(s)", created)

    def _link(self, document: QTextDocument, record: MatchRecord, astral: List[int]) -> Optional[Annotation]:
        category = self._classifier.classify(record)
        if not category.is_linkable:
            logger.debug("No link for %r (%s)", record.symbol_text, record.context_keyword.value)
            return None
        start = document_position(astral, record.start)
        end = document_position(astral, record.end)
        return self._builder.build(document, start, end, category, record.symbol_text)
