from __future__ import annotations

import logging
from typing import Optional

from PyQt5.QtCore import QObject, pyqtSignal

from xref.annotations import Annotation
from xref.categories import XrefConfig
from xref.models import ActivationResult

logger = logging.getLogger(__name__)


class ActivationDispatcher(QObject):
    """Routes an activated annotation to its category handler.

    Views are announced through ``view_requested``; informational messages
    for the user go out through ``message_posted``. Failures never escape
    :meth:`activate`.
    """

    message_posted = pyqtSignal(str)
    view_requested = pyqtSignal(object)

    def __init__(self, config: XrefConfig, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._config = config

    def activate(self, annotation: Annotation) -> ActivationResult:
        descriptor = self._config.descriptor(annotation.category)
        if descriptor is None:
            result = ActivationResult(message=f"Nothing to show for {annotation.symbol}")
        else:
            try:
                result = descriptor.handler(annotation.symbol, *annotation.extra_args)
            except Exception:
                logger.exception("Handler for %s failed on %r", annotation.category.value, annotation.symbol)
                result = ActivationResult(message=f"Unable to describe {annotation.symbol}")

        if result.view is not None:
            self.view_requested.emit(result.view)
        if result.message:
            logger.info("%s: %s", annotation.symbol, result.message)
            self.message_posted.emit(result.message)
        return result
