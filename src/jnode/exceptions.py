"""Exception classes raised by the node edit pipeline."""

from __future__ import annotations


class NodeEditError(Exception):
    """Base class for expected node edit failures."""


class AddressResolutionError(NodeEditError, LookupError):
    """Raised when a path cannot be walked to a container in the document."""

    def __init__(self, path: list[str | int], reason: str) -> None:
        super().__init__(f"cannot resolve {list(path)!r}: {reason}")
        self.path = list(path)
        self.reason = reason


class DocumentParseError(NodeEditError, ValueError):
    """Raised when the document text is not valid JSON."""


class EditStateError(NodeEditError, RuntimeError):
    """Raised for an edit operation not allowed in the current mode."""


class PathSyntaxError(NodeEditError, ValueError):
    """Raised when a rendered path string cannot be parsed."""
