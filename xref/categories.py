"""Per-category configuration: existence predicates, handlers, hover hints.

:func:`build_config` is called once at startup. The resulting
:class:`XrefConfig` is immutable and shared by the scanner, classifier and
dispatcher.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Tuple

from settings.xref_settings import XrefSettings
from xref.locator import SourceDefinitionLocator
from xref.models import ActivationResult, DetailView, ReferenceCategory
from xref.patterns import SyntaxTable, symbol_syntax
from xref.registry import Describer, DescriberRegistry, SymbolRegistry, default_describers

logger = logging.getLogger(__name__)

DEFINITION_FILE_MISSING = "Unable to find defining file"
DEFINITION_LOCATION_MISSING = "Unable to find location in file"

EXCERPT_LINES = 12

Handler = Callable[..., ActivationResult]


@dataclass(frozen=True)
class CategoryDescriptor:
    category: ReferenceCategory
    exists: Callable[[str], bool]
    handler: Handler
    hover_hint: str


@dataclass(frozen=True)
class XrefConfig:
    descriptors: Mapping[ReferenceCategory, CategoryDescriptor]
    describers: Tuple[Describer, ...]
    syntax: SyntaxTable

    def descriptor(self, category: ReferenceCategory) -> Optional[CategoryDescriptor]:
        return self.descriptors.get(category)


def _always(_name: str) -> bool:
    return True


def _describe_as(registry: SymbolRegistry, category: ReferenceCategory) -> Handler:
    def handler(symbol: str, *_extra_args) -> ActivationResult:
        view = registry.describe(symbol, category)
        if view is None:
            return ActivationResult(message=f"Unable to describe {symbol}")
        return ActivationResult(view=view)

    return handler


def _describe_symbol(describers: Tuple[Describer, ...]) -> Handler:
    def handler(symbol: str, *_extra_args) -> ActivationResult:
        views = [d.describe(symbol) for d in describers if d.predicate(symbol)]
        views = [view for view in views if view is not None]
        if not views:
            return ActivationResult(message=f"Unable to describe {symbol}")
        if len(views) == 1:
            return ActivationResult(view=views[0])
        body = "\n\n".join(f"{view.category}: {view.body}" for view in views)
        return ActivationResult(
            view=DetailView(title=symbol, category=ReferenceCategory.SYMBOL.label, body=body)
        )

    return handler


def _read_excerpt(path: str, offset: Optional[int]) -> str:
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as handle:
            text = handle.read()
    except OSError as exc:
        logger.info("Cannot read %s: %s", path, exc)
        return ""
    start = 0
    if offset is not None:
        start = text.rfind("\n", 0, offset) + 1
    return "\n".join(text[start:].splitlines()[:EXCERPT_LINES])


def _find_definition(locator) -> Handler:
    def handler(symbol: str, *_extra_args) -> ActivationResult:
        location = locator.find_definition_location(symbol)
        if location is None:
            return ActivationResult(message=DEFINITION_FILE_MISSING)
        path, offset = location
        view = DetailView(
            title=f"{symbol} ({os.path.basename(path)})",
            category=ReferenceCategory.DEFINITION_SOURCE.label,
            body=_read_excerpt(path, offset),
            file_path=path,
            offset=offset,
        )
        if offset is None:
            return ActivationResult(view=view, message=DEFINITION_LOCATION_MISSING)
        return ActivationResult(view=view)

    return handler


def build_config(
    registry: SymbolRegistry,
    settings: Optional[XrefSettings] = None,
    locator=None,
    describers: Optional[DescriberRegistry] = None,
) -> XrefConfig:
    """Assemble the immutable configuration used for every scan.

    ``describers`` defaults to the function/face/variable describers of
    ``registry``; later registrations on the passed registry are not seen.
    """
    settings = settings or XrefSettings()
    locator = locator or SourceDefinitionLocator(registry)
    snapshot = (describers if describers is not None else default_describers(registry)).snapshot()

    def hint(category: ReferenceCategory) -> str:
        return settings.hover_hint(category.value)

    descriptors = {
        ReferenceCategory.VARIABLE: CategoryDescriptor(
            ReferenceCategory.VARIABLE,
            registry.is_bound_as_variable,
            _describe_as(registry, ReferenceCategory.VARIABLE),
            hint(ReferenceCategory.VARIABLE),
        ),
        ReferenceCategory.FUNCTION: CategoryDescriptor(
            ReferenceCategory.FUNCTION,
            registry.is_bound_as_function,
            _describe_as(registry, ReferenceCategory.FUNCTION),
            hint(ReferenceCategory.FUNCTION),
        ),
        ReferenceCategory.FACE: CategoryDescriptor(
            ReferenceCategory.FACE,
            registry.is_face,
            _describe_as(registry, ReferenceCategory.FACE),
            hint(ReferenceCategory.FACE),
        ),
        ReferenceCategory.SYMBOL: CategoryDescriptor(
            ReferenceCategory.SYMBOL,
            lambda name: any(d.predicate(name) for d in snapshot),
            _describe_symbol(snapshot),
            hint(ReferenceCategory.SYMBOL),
        ),
        # Existence is resolved lazily by the handler.
        ReferenceCategory.DEFINITION_SOURCE: CategoryDescriptor(
            ReferenceCategory.DEFINITION_SOURCE,
            _always,
            _find_definition(locator),
            hint(ReferenceCategory.DEFINITION_SOURCE),
        ),
    }
    return XrefConfig(
        descriptors=MappingProxyType(descriptors),
        describers=snapshot,
        syntax=symbol_syntax(settings.symbol_chars),
    )
