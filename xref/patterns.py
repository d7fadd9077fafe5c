"""Recognise quoted symbol references in documentation text.

A reference looks like ``function `foo-bar'``: an optional context keyword,
then a symbol wrapped in a leading `` ` ``, ``'`` or ``‘`` and a trailing
``'`` or ``’``. The keyword decides how the reference is classified later;
this module only finds references and reports which keyword (if any) came
before them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Pattern, Tuple


class ContextKeyword(Enum):
    NONE = "none"
    VARIABLE = "variable"
    FUNCTION = "function"
    FACE = "face"
    SYMBOL = "symbol"
    DEFINITION = "definition"


@dataclass(frozen=True)
class SyntaxTable:
    """Character classes used to tokenize a document.

    Letters and digits are always word constituents. ``symbol_chars`` lists
    the extra characters allowed to continue a symbol.
    """

    name: str
    symbol_chars: str = ""


TEXT_SYNTAX = SyntaxTable("text")


def symbol_syntax(symbol_chars: str) -> SyntaxTable:
    return SyntaxTable("symbol", symbol_chars)


@dataclass(frozen=True)
class MatchRecord:
    """A single reference found in a block of text.

    ``start``/``end`` cover the symbol only, never the quote characters.
    ``match_end`` is the end of the whole match, closing quote included.
    """

    start: int
    end: int
    symbol_text: str
    context_keyword: ContextKeyword = ContextKeyword.NONE
    keyword_text: Optional[str] = None
    match_end: Optional[int] = None

    @property
    def resume_position(self) -> int:
        return self.end if self.match_end is None else self.match_end

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.end)


# Group order is significant: it is also the order keywords are decoded in.
KEYWORD_GROUPS: Tuple[Tuple[str, ContextKeyword, str], ...] = (
    ("kw_variable", ContextKeyword.VARIABLE, r"variable|option"),
    ("kw_function", ContextKeyword.FUNCTION, r"function|command|call"),
    ("kw_face", ContextKeyword.FACE, r"face"),
    ("kw_symbol", ContextKeyword.SYMBOL, r"symbol|program|property"),
    ("kw_definition", ContextKeyword.DEFINITION, r"source (?:code )?(?:of|for)"),
)

OPEN_QUOTES = "`'‘"
CLOSE_QUOTES = "'’"

_WORD_CHAR = r"[^\W_]"


def build_reference_pattern(syntax: SyntaxTable) -> Pattern[str]:
    """Compile the composite reference pattern for ``syntax``."""
    if syntax.symbol_chars:
        continuation = rf"(?:{_WORD_CHAR}|[{re.escape(syntax.symbol_chars)}])"
    else:
        continuation = _WORD_CHAR
    keywords = "|".join(f"(?P<{name}>{body})" for name, _keyword, body in KEYWORD_GROUPS)
    pattern = (
        rf"(?:\b(?:(?:the|a|an)\s+)?(?P<keyword>{keywords})\s+)?"
        rf"[{re.escape(OPEN_QUOTES)}]"
        rf"(?P<symbol>{_WORD_CHAR}{continuation}+)"
        rf"[{re.escape(CLOSE_QUOTES)}]"
    )
    return re.compile(pattern, re.IGNORECASE)


class ReferenceMatcher:
    """Scans text for references, left to right, without overlaps."""

    def __init__(self, syntax: SyntaxTable) -> None:
        self.syntax = syntax
        self._pattern = build_reference_pattern(syntax)

    def iter_matches(self, text: str, start: int = 0) -> Iterator[MatchRecord]:
        """Yield references found in ``text`` from offset ``start`` onwards.

        The iterator is lazy; callers can stop early and resume later by
        passing the last record's ``resume_position`` as the new ``start``.
        """
        position = start
        while position <= len(text):
            match = self._pattern.search(text, position)
            if match is None:
                return
            yield self._to_record(match)
            position = match.end()

    def find_all(self, text: str) -> list:
        return list(self.iter_matches(text))

    @staticmethod
    def _to_record(match: "re.Match[str]") -> MatchRecord:
        context = ContextKeyword.NONE
        for group_name, keyword, _body in KEYWORD_GROUPS:
            if match.group(group_name) is not None:
                context = keyword
                break
        return MatchRecord(
            start=match.start("symbol"),
            end=match.end("symbol"),
            symbol_text=match.group("symbol"),
            context_keyword=context,
            keyword_text=match.group("keyword"),
            match_end=match.end(),
        )
