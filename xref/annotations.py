"""Annotations stored directly in a ``QTextDocument``.

An annotation is a run of characters whose char format is an anchor carrying
the xref properties below. Keeping them in the document ties their lifetime
to the text: deleting or retyping the text drops the annotation with it.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple
from urllib.parse import quote

from PyQt5.QtGui import QColor, QTextBlock, QTextCharFormat, QTextCursor, QTextDocument, QTextFormat

from settings.xref_settings import XrefSettings
from xref.categories import CategoryDescriptor, XrefConfig
from xref.models import ReferenceCategory

logger = logging.getLogger(__name__)

XREF_KEY_PROPERTY = QTextFormat.UserProperty + 1
XREF_CATEGORY_PROPERTY = QTextFormat.UserProperty + 2
XREF_SYMBOL_PROPERTY = QTextFormat.UserProperty + 3
XREF_ARGS_PROPERTY = QTextFormat.UserProperty + 4

HREF_SCHEME = "xref"

_keys = itertools.count(1)


@dataclass(frozen=True)
class Annotation:
    """An interactive span over a reference's symbol text."""

    start: int
    end: int
    category: ReferenceCategory
    symbol: str
    extra_args: Tuple = ()
    key: int = field(default=0, compare=False)

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.end)

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.end


def make_href(category: ReferenceCategory, symbol: str) -> str:
    return f"{HREF_SCHEME}:{category.value}:{quote(symbol, safe='')}"


def _annotation_from_format(fmt: QTextCharFormat, start: int, end: int) -> Optional[Annotation]:
    if not fmt.hasProperty(XREF_KEY_PROPERTY):
        return None
    try:
        category = ReferenceCategory(fmt.stringProperty(XREF_CATEGORY_PROPERTY))
    except ValueError:
        return None
    extra = fmt.property(XREF_ARGS_PROPERTY) if fmt.hasProperty(XREF_ARGS_PROPERTY) else None
    return Annotation(
        start=start,
        end=end,
        category=category,
        symbol=fmt.stringProperty(XREF_SYMBOL_PROPERTY),
        extra_args=tuple(extra or ()),
        key=fmt.intProperty(XREF_KEY_PROPERTY),
    )


def _block_annotations(block: QTextBlock) -> List[Annotation]:
    found: List[Annotation] = []
    it = block.begin()
    while not it.atEnd():
        fragment = it.fragment()
        it += 1
        if not fragment.isValid():
            continue
        start = fragment.position()
        end = start + fragment.length()
        annotation = _annotation_from_format(fragment.charFormat(), start, end)
        if annotation is None:
            continue
        # A single annotation may be split across fragments; merge by key.
        if found and found[-1].key == annotation.key and found[-1].end == start:
            previous = found.pop()
            annotation = Annotation(
                start=previous.start,
                end=end,
                category=previous.category,
                symbol=previous.symbol,
                extra_args=previous.extra_args,
                key=previous.key,
            )
        found.append(annotation)
    return found


def _blocks_between(document: QTextDocument, start: int, end: int) -> Iterator[QTextBlock]:
    block = document.findBlock(max(start, 0))
    while block.isValid() and block.position() < max(end, start + 1):
        yield block
        block = block.next()


def annotations_in(document: QTextDocument) -> List[Annotation]:
    """All annotations in ``document``, in text order."""
    found: List[Annotation] = []
    block = document.begin()
    while block.isValid():
        found.extend(_block_annotations(block))
        block = block.next()
    return found


def annotation_at(document: QTextDocument, position: int) -> Optional[Annotation]:
    """The annotation covering the character at ``position``, if any."""
    if position < 0:
        return None
    block = document.findBlock(position)
    if not block.isValid():
        return None
    for annotation in _block_annotations(block):
        if annotation.start <= position < annotation.end:
            return annotation
    return None


def span_is_annotated(document: QTextDocument, start: int, end: int) -> bool:
    for block in _blocks_between(document, start, end):
        if any(annotation.overlaps(start, end) for annotation in _block_annotations(block)):
            return True
    return False


def next_annotation(document: QTextDocument, position: int) -> Optional[Annotation]:
    """First annotation starting after ``position``, wrapping to the first one."""
    annotations = annotations_in(document)
    if not annotations:
        return None
    for annotation in annotations:
        if annotation.start > position:
            return annotation
    return annotations[0]


def previous_annotation(document: QTextDocument, position: int) -> Optional[Annotation]:
    """Last annotation starting before the one at ``position``, wrapping to the last one."""
    annotations = annotations_in(document)
    if not annotations:
        return None
    current = annotation_at(document, position)
    limit = current.start if current else position
    for annotation in reversed(annotations):
        if annotation.start < limit:
            return annotation
    return annotations[-1]


class AnnotationBuilder:
    """Turns a classified reference into an anchor over its symbol text."""

    def __init__(self, config: XrefConfig, settings: Optional[XrefSettings] = None) -> None:
        self._config = config
        self._settings = settings or XrefSettings()

    def build(
        self,
        document: QTextDocument,
        start: int,
        end: int,
        category: ReferenceCategory,
        symbol: str,
        extra_args: Sequence = (),
    ) -> Optional[Annotation]:
        """Annotate ``[start, end)`` unless any part of it is already annotated.

        Returns the new annotation, or ``None`` when nothing was created.
        """
        descriptor = self._config.descriptor(category)
        if descriptor is None or end <= start:
            return None
        if span_is_annotated(document, start, end):
            logger.debug("Span %d-%d already annotated; skipping %s", start, end, symbol)
            return None

        key = next(_keys)
        cursor = QTextCursor(document)
        cursor.setPosition(start)
        cursor.setPosition(end, QTextCursor.KeepAnchor)
        cursor.mergeCharFormat(self._link_format(descriptor, symbol, tuple(extra_args), key))
        return Annotation(
            start=start,
            end=end,
            category=category,
            symbol=symbol,
            extra_args=tuple(extra_args),
            key=key,
        )

    def _link_format(
        self,
        descriptor: CategoryDescriptor,
        symbol: str,
        extra_args: Tuple,
        key: int,
    ) -> QTextCharFormat:
        fmt = QTextCharFormat()
        fmt.setAnchor(True)
        fmt.setAnchorHref(make_href(descriptor.category, symbol))
        fmt.setToolTip(descriptor.hover_hint)
        fmt.setForeground(QColor(self._settings.link_color))
        fmt.setFontUnderline(self._settings.underline)
        fmt.setProperty(XREF_KEY_PROPERTY, key)
        fmt.setProperty(XREF_CATEGORY_PROPERTY, descriptor.category.value)
        fmt.setProperty(XREF_SYMBOL_PROPERTY, symbol)
        if extra_args:
            fmt.setProperty(XREF_ARGS_PROPERTY, list(extra_args))
        return fmt
