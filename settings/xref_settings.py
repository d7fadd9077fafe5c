from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from xref.errors import SettingsError

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "XREF_SETTINGS"
DEFAULT_SETTINGS_FILE = "xref_settings.json"

DEFAULT_HOVER_HINTS: Dict[str, str] = {
    "variable": "describe this variable",
    "function": "describe this function",
    "face": "describe this face",
    "symbol": "describe this symbol",
    "definition_source": "find the definition source",
}

# Characters that join word characters into a single symbol while a scan runs.
DEFAULT_SYMBOL_CHARS = "-_+*/<>=!?$%&|:~^"


def _default_hover_hints() -> Dict[str, str]:
    return dict(DEFAULT_HOVER_HINTS)


@dataclass(frozen=True)
class XrefSettings:
    """User-tunable presentation and matching settings.

    Loaded once at startup and handed by reference to everything that needs
    it; nothing mutates an instance after construction.
    """

    hover_hints: Dict[str, str] = field(default_factory=_default_hover_hints)
    link_color: str = "#2a6fdb"
    underline: bool = True
    symbol_chars: str = DEFAULT_SYMBOL_CHARS
    popup_width: int = 350
    popup_max_height: int = 250

    def hover_hint(self, category_key: str) -> str:
        return self.hover_hints.get(category_key) or DEFAULT_HOVER_HINTS.get(category_key, "")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "XrefSettings":
        if not isinstance(data, dict):
            raise SettingsError("settings must be a JSON object")
        defaults = cls()
        values: Dict[str, Any] = {}
        for item in fields(cls):
            if item.name not in data:
                continue
            raw = data[item.name]
            default = getattr(defaults, item.name)
            if item.name == "hover_hints":
                if not isinstance(raw, dict) or not all(
                    isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
                ):
                    raise SettingsError("hover_hints must map category names to strings")
                merged = _default_hover_hints()
                merged.update(raw)
                values[item.name] = merged
                continue
            # bool is an int subclass; keep the two apart
            if isinstance(default, bool) != isinstance(raw, bool) or not isinstance(raw, type(default)):
                raise SettingsError(
                    f"{item.name} must be of type {type(default).__name__}, got {type(raw).__name__}"
                )
            values[item.name] = raw
        unknown = sorted(set(data) - {item.name for item in fields(cls)})
        if unknown:
            logger.debug("Ignoring unknown settings keys: %s", ", ".join(unknown))
        return cls(**values)


def settings_path() -> str:
    """Return the settings file location, honouring ``XREF_SETTINGS``."""
    return os.environ.get(SETTINGS_ENV_VAR) or os.path.join(os.getcwd(), DEFAULT_SETTINGS_FILE)


def load_settings(path: Optional[str] = None) -> XrefSettings:
    """Read settings from ``path`` (or :func:`settings_path`).

    A missing file gives the defaults. A file that is not valid JSON or holds
    values of the wrong type raises :class:`SettingsError`.
    """
    target = path or settings_path()
    if not os.path.exists(target):
        logger.debug("No settings file at %s; using defaults", target)
        return XrefSettings()
    try:
        with open(target, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Invalid settings file {target}: {exc}") from exc
    logger.debug("Loaded settings from %s", target)
    return XrefSettings.from_dict(data)
