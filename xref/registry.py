from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple

from xref.errors import SymbolTableError
from xref.models import DetailView, ReferenceCategory

logger = logging.getLogger(__name__)

SYMBOL_KINDS = ("variable", "function", "face")


class SymbolRegistry:
    """Answers whether a name denotes a variable, function, face, ...

    The scanner and dispatcher only talk to this interface; hosts plug in
    whatever actually owns their symbols.
    """

    def is_known(self, name: str) -> bool:
        raise NotImplementedError

    def is_bound_as_variable(self, name: str) -> bool:
        raise NotImplementedError

    def is_bound_as_function(self, name: str) -> bool:
        raise NotImplementedError

    def is_face(self, name: str) -> bool:
        raise NotImplementedError

    def describe(self, name: str, category: ReferenceCategory) -> Optional[DetailView]:
        raise NotImplementedError

    def source_file(self, name: str) -> Optional[str]:
        return None


@dataclass(frozen=True)
class SymbolEntry:
    """One named symbol: the kinds it is bound as and their documentation."""

    name: str
    kinds: FrozenSet[str] = frozenset()
    docs: Dict[str, str] = field(default_factory=dict)
    source_file: Optional[str] = None


class SymbolTable(SymbolRegistry):
    """In-memory registry, typically loaded from a JSON file.

    File layout::

        {"symbols": [
            {"name": "fill-column", "variable": "Column beyond which...", "source": "simple.el"},
            {"name": "forward-word", "function": true},
            {"name": "bold", "face": "Bold face."},
            {"name": "tab-width", "variable_doc": "Documented but unbound."},
            {"name": "invisible"}
        ]}

    A kind set to a string is bound and documented; ``true`` is bound without
    documentation. An entry with no kinds is known but describes nothing.
    """

    def __init__(self, entries: Iterable[SymbolEntry] = ()) -> None:
        self._entries: Dict[str, SymbolEntry] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: SymbolEntry) -> None:
        self._entries[entry.name] = entry

    def define(
        self,
        name: str,
        *,
        variable: object = None,
        function: object = None,
        face: object = None,
        variable_doc: Optional[str] = None,
        source_file: Optional[str] = None,
    ) -> SymbolEntry:
        """Convenience for building a table in code; mirrors the JSON layout."""
        kinds, docs = _collect_kinds({"variable": variable, "function": function, "face": face})
        if variable_doc:
            docs.setdefault("variable", variable_doc)
        entry = SymbolEntry(name=name, kinds=frozenset(kinds), docs=docs, source_file=source_file)
        self.add(entry)
        return entry

    def get(self, name: str) -> Optional[SymbolEntry]:
        return self._entries.get(name)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SymbolEntry]:
        return iter(self._entries.values())

    # ------------------------------------------------------------------
    # SymbolRegistry
    # ------------------------------------------------------------------
    def is_known(self, name: str) -> bool:
        return name in self._entries

    def is_bound_as_variable(self, name: str) -> bool:
        entry = self._entries.get(name)
        return bool(entry) and ("variable" in entry.kinds or "variable" in entry.docs)

    def is_bound_as_function(self, name: str) -> bool:
        entry = self._entries.get(name)
        return bool(entry) and "function" in entry.kinds

    def is_face(self, name: str) -> bool:
        entry = self._entries.get(name)
        return bool(entry) and "face" in entry.kinds

    def describe(self, name: str, category: ReferenceCategory) -> Optional[DetailView]:
        entry = self._entries.get(name)
        if entry is None:
            return None
        kind = category.value
        if kind not in SYMBOL_KINDS:
            return None
        doc = entry.docs.get(kind) or "Not documented."
        return DetailView(
            title=name,
            category=category.label,
            body=doc,
            file_path=entry.source_file,
        )

    def source_file(self, name: str) -> Optional[str]:
        entry = self._entries.get(name)
        return entry.source_file if entry else None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @classmethod
    def from_dict(cls, data: Dict, base_dir: Optional[str] = None) -> "SymbolTable":
        if not isinstance(data, dict) or not isinstance(data.get("symbols", []), list):
            raise SymbolTableError("symbol table must be an object with a 'symbols' list")
        table = cls()
        for index, item in enumerate(data.get("symbols", [])):
            name = item.get("name") if isinstance(item, dict) else None
            if not isinstance(name, str) or not name.strip():
                raise SymbolTableError(f"symbol #{index} has no name")
            kinds, docs = _collect_kinds({kind: item.get(kind) for kind in SYMBOL_KINDS})
            variable_doc = item.get("variable_doc")
            if isinstance(variable_doc, str) and variable_doc:
                docs.setdefault("variable", variable_doc)
            source = item.get("source")
            if isinstance(source, str) and source and base_dir and not os.path.isabs(source):
                source = os.path.join(base_dir, source)
            table.add(
                SymbolEntry(
                    name=name.strip(),
                    kinds=frozenset(kinds),
                    docs=docs,
                    source_file=source if isinstance(source, str) and source else None,
                )
            )
        return table

    @classmethod
    def from_json(cls, path: str) -> "SymbolTable":
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise SymbolTableError(f"Invalid symbol table {path}: {exc}") from exc
        except OSError as exc:
            raise SymbolTableError(f"Cannot read symbol table {path}: {exc}") from exc
        table = cls.from_dict(data, base_dir=os.path.dirname(os.path.abspath(path)))
        logger.debug("Loaded %d symbols from %s", len(table), path)
        return table


def _collect_kinds(raw: Dict[str, object]) -> Tuple[List[str], Dict[str, str]]:
    kinds: List[str] = []
    docs: Dict[str, str] = {}
    for kind, value in raw.items():
        if value is None or value is False:
            continue
        kinds.append(kind)
        if isinstance(value, str) and value:
            docs[kind] = value
    return kinds, docs


@dataclass(frozen=True)
class Describer:
    """A ``(predicate, describe)`` pair used by the generic symbol fallback."""

    name: str
    predicate: Callable[[str], bool]
    describe: Callable[[str], Optional[DetailView]]


class DescriberRegistry:
    """Ordered, append-only list of describers.

    Modules that know about another kind of describable object register a
    describer at startup; the classifier and the symbol handler consult the
    describers in registration order.
    """

    def __init__(self, describers: Sequence[Describer] = ()) -> None:
        self._describers: List[Describer] = list(describers)

    def register(
        self,
        name: str,
        predicate: Callable[[str], bool],
        describe: Callable[[str], Optional[DetailView]],
    ) -> Describer:
        describer = Describer(name=name, predicate=predicate, describe=describe)
        self._describers.append(describer)
        return describer

    def snapshot(self) -> Tuple[Describer, ...]:
        return tuple(self._describers)

    def __iter__(self) -> Iterator[Describer]:
        return iter(self._describers)

    def __len__(self) -> int:
        return len(self._describers)


def default_describers(registry: SymbolRegistry) -> DescriberRegistry:
    """Function, face and variable describers backed by ``registry``."""
    describers = DescriberRegistry()
    describers.register(
        "function",
        registry.is_bound_as_function,
        lambda name: registry.describe(name, ReferenceCategory.FUNCTION),
    )
    describers.register(
        "face",
        registry.is_face,
        lambda name: registry.describe(name, ReferenceCategory.FACE),
    )
    describers.register(
        "variable",
        registry.is_bound_as_variable,
        lambda name: registry.describe(name, ReferenceCategory.VARIABLE),
    )
    return describers
