import json

import pytest

from settings.xref_settings import DEFAULT_SYMBOL_CHARS, SETTINGS_ENV_VAR, XrefSettings, load_settings
from xref.errors import SettingsError


def test_defaults_when_file_missing(tmp_path):
    settings = load_settings(str(tmp_path / "missing.json"))
    assert settings == XrefSettings()
    assert settings.hover_hint("function") == "describe this function"
    assert settings.symbol_chars == DEFAULT_SYMBOL_CHARS


def test_overrides_are_merged(tmp_path):
    path = tmp_path / "xref_settings.json"
    path.write_text(
        json.dumps({"link_color": "#ff0000", "hover_hints": {"face": "show face"}, "unused": 1}),
        encoding="utf-8",
    )
    settings = load_settings(str(path))
    assert settings.link_color == "#ff0000"
    assert settings.hover_hint("face") == "show face"
    assert settings.hover_hint("variable") == "describe this variable"


def test_environment_variable_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"popup_width": 500}), encoding="utf-8")
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
    assert load_settings().popup_width == 500


def test_wrong_types_raise(tmp_path):
    with pytest.raises(SettingsError):
        XrefSettings.from_dict({"underline": "yes"})
    with pytest.raises(SettingsError):
        XrefSettings.from_dict({"popup_width": True})
    with pytest.raises(SettingsError):
        XrefSettings.from_dict({"hover_hints": {"face": 3}})
    with pytest.raises(SettingsError):
        XrefSettings.from_dict(["not", "a", "dict"])
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(str(broken))
