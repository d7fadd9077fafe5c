class XrefError(Exception):
    """Base class for cross-reference errors that reach the caller."""


class ScanInProgressError(XrefError):
    """Raised when a document is scanned while a scan of it is still running."""


class SymbolTableError(XrefError):
    """Raised when a symbol table file cannot be parsed."""


class SettingsError(XrefError):
    """Raised when the settings file holds values of the wrong shape."""
