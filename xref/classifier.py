from __future__ import annotations

import logging

from xref.categories import XrefConfig
from xref.models import ReferenceCategory
from xref.patterns import ContextKeyword, MatchRecord
from xref.registry import SymbolRegistry

logger = logging.getLogger(__name__)

_PROBED_KEYWORDS = {
    ContextKeyword.VARIABLE: ReferenceCategory.VARIABLE,
    ContextKeyword.FUNCTION: ReferenceCategory.FUNCTION,
    ContextKeyword.FACE: ReferenceCategory.FACE,
}


class ReferenceClassifier:
    """Decides which category a matched reference links to, if any."""

    def __init__(self, config: XrefConfig, registry: SymbolRegistry) -> None:
        self._config = config
        self._registry = registry

    def classify(self, record: MatchRecord) -> ReferenceCategory:
        symbol = record.symbol_text
        if not self._registry.is_known(symbol):
            return ReferenceCategory.UNLINKED

        keyword = record.context_keyword
        # Branch order matters: an explicit keyword always wins over the
        # generic fallback, and "symbol" must opt out before the fallback runs.
        if keyword in _PROBED_KEYWORDS:
            category = _PROBED_KEYWORDS[keyword]
            descriptor = self._config.descriptor(category)
            if descriptor is not None and descriptor.exists(symbol):
                return category
            return ReferenceCategory.UNLINKED
        if keyword is ContextKeyword.SYMBOL:
            return ReferenceCategory.UNLINKED
        if keyword is ContextKeyword.DEFINITION:
            return ReferenceCategory.DEFINITION_SOURCE

        for describer in self._config.describers:
            if describer.predicate(symbol):
                logger.debug("%s matched the %s describer", symbol, describer.name)
                return ReferenceCategory.SYMBOL
        return ReferenceCategory.UNLINKED
