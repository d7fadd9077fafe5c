from __future__ import annotations

import logging
import os
import re
from typing import Optional, Pattern, Tuple

from xref.registry import SymbolRegistry

logger = logging.getLogger(__name__)

DefinitionLocation = Tuple[str, Optional[int]]

# Templates take the escaped symbol as {name} and a capture group name as {group}.
_DEFINITION_TEMPLATES = (
    r"^[ \t]*(?:async[ \t]+)?def[ \t]+(?P<{group}>{name})(?=[\s(:])",
    r"^[ \t]*class[ \t]+(?P<{group}>{name})(?=[\s(:])",
    r"^[ \t]*\((?:cl-)?def(?:un|macro|subst|var|varalias|custom|const|face|alias|generic|method)\*?"
    r"[ \t]+(?P<{group}>{name})(?=[\s)])",
    r"^(?P<{group}>{name})[ \t]*(?::[^=\n]*)?=(?!=)",
)


def definition_pattern(name: str) -> Pattern[str]:
    escaped = re.escape(name)
    alternatives = "|".join(
        "(?:" + template.format(name=escaped, group=f"name{index}") + ")"
        for index, template in enumerate(_DEFINITION_TEMPLATES)
    )
    return re.compile(alternatives, re.MULTILINE)


class SourceDefinitionLocator:
    """Finds where a symbol is defined, using the registry's source file.

    ``find_definition_location`` has three outcomes: ``None`` when no file is
    known or readable, ``(path, None)`` when the file exists but no definition
    line matched, and ``(path, offset)`` on a full hit.
    """

    def __init__(self, registry: SymbolRegistry) -> None:
        self._registry = registry

    def find_definition_location(self, symbol: str) -> Optional[DefinitionLocation]:
        path = self._registry.source_file(symbol)
        if not path or not os.path.isfile(path):
            logger.debug("No defining file for %s", symbol)
            return None
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as handle:
                text = handle.read()
        except OSError as exc:
            logger.info("Cannot read defining file %s for %s: %s", path, symbol, exc)
            return None
        match = definition_pattern(symbol).search(text)
        if match is None:
            return (path, None)
        group = next(name for name, value in match.groupdict().items() if value is not None)
        return (path, match.start(group))
