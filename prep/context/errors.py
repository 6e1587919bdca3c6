"""Errors raised by the context retrieval engine."""


class ContextError(Exception):
    """Base class for context retrieval errors."""


class VaultIOError(ContextError, OSError):
    """The vault root is missing, not a directory or unreadable."""

    def __init__(self, vault_path: str, reason: str) -> None:
        super().__init__(f"Cannot read vault {vault_path}: {reason}")
        self.vault_path = vault_path
        self.reason = reason


class ParseError(ContextError):
    """A single note could not be turned into a document."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to parse {path}: {reason}")
        self.path = path
        self.reason = reason


class IndexNotReadyError(ContextError):
    """A query needed an index before any vault was indexed."""
