from xref.categories import build_config
from xref.classifier import ReferenceClassifier
from xref.models import ReferenceCategory
from xref.patterns import ContextKeyword, MatchRecord
from xref.registry import DescriberRegistry, SymbolTable


def _table():
    table = SymbolTable()
    table.define("fill-column", variable="Column beyond which automatic line-wrapping should happen.")
    table.define("tab-width", variable_doc="Distance between tab stops.")
    table.define("forward-word", function="Move point forward ARG words.")
    table.define("bold", face="Basic bold face.")
    table.define("invisible")
    return table


def _classify(table, symbol, keyword=ContextKeyword.NONE, describers=None):
    config = build_config(table, describers=describers)
    record = MatchRecord(start=0, end=len(symbol), symbol_text=symbol, context_keyword=keyword)
    return ReferenceClassifier(config, table).classify(record)


def test_variable_keyword_requires_variable_binding_or_documentation():
    table = _table()
    assert _classify(table, "fill-column", ContextKeyword.VARIABLE) is ReferenceCategory.VARIABLE
    assert _classify(table, "tab-width", ContextKeyword.VARIABLE) is ReferenceCategory.VARIABLE
    assert _classify(table, "forward-word", ContextKeyword.VARIABLE) is ReferenceCategory.UNLINKED


def test_function_and_face_keywords_are_probed():
    table = _table()
    assert _classify(table, "forward-word", ContextKeyword.FUNCTION) is ReferenceCategory.FUNCTION
    assert _classify(table, "bold", ContextKeyword.FUNCTION) is ReferenceCategory.UNLINKED
    assert _classify(table, "bold", ContextKeyword.FACE) is ReferenceCategory.FACE
    assert _classify(table, "fill-column", ContextKeyword.FACE) is ReferenceCategory.UNLINKED


def test_symbol_keyword_never_links():
    table = _table()
    for name in ("fill-column", "forward-word", "bold", "invisible"):
        assert _classify(table, name, ContextKeyword.SYMBOL) is ReferenceCategory.UNLINKED


def test_definition_keyword_links_without_probing():
    table = _table()
    assert _classify(table, "invisible", ContextKeyword.DEFINITION) is ReferenceCategory.DEFINITION_SOURCE


def test_unknown_symbols_never_link():
    table = _table()
    for keyword in ContextKeyword:
        assert _classify(table, "no-such-thing", keyword) is ReferenceCategory.UNLINKED


def test_generic_fallback_uses_describers():
    table = _table()
    assert _classify(table, "forward-word") is ReferenceCategory.SYMBOL
    assert _classify(table, "tab-width") is ReferenceCategory.SYMBOL
    assert _classify(table, "invisible") is ReferenceCategory.UNLINKED


def test_registered_describer_extends_fallback_in_order():
    table = _table()
    calls = []
    describers = DescriberRegistry()

    def first(name):
        calls.append("first")
        return name == "invisible"

    def second(name):
        calls.append("second")
        return True

    describers.register("text-property", first, lambda name: None)
    describers.register("anything", second, lambda name: None)

    assert _classify(table, "invisible", describers=describers) is ReferenceCategory.SYMBOL
    assert calls == ["first"]
