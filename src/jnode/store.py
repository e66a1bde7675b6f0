"""Document text storage."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable

_LOG = logging.getLogger(__name__)


class DocumentStore:
    """Holds the current document text and notifies listeners on replace."""

    def __init__(self, text: str = "{}") -> None:
        self._text = text
        self._listeners: list[Callable[[str], None]] = []

    def read_text(self) -> str:
        return self._text

    def replace_text(self, text: str) -> None:
        self._text = text
        for listener in list(self._listeners):
            listener(text)

    def add_listener(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)


class FileDocumentStore(DocumentStore):
    """DocumentStore that writes every replacement back to a file."""

    def __init__(self, file_path: str | Path, default: str = "{}") -> None:
        self.file_path = Path(file_path)
        if self.file_path.exists():
            text = self.file_path.read_text(encoding="utf-8")
        else:
            # New file; nothing is written until the first commit.
            text = default
        super().__init__(text)

    def replace_text(self, text: str) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        # Write via temp file + replace so a failed write leaves the file intact.
        fd, temp_path = tempfile.mkstemp(
            prefix=f".{self.file_path.name}.", suffix=".tmp", dir=self.file_path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            Path(temp_path).replace(self.file_path)
        except OSError:
            Path(temp_path).unlink(missing_ok=True)
            raise
        _LOG.info("saved %s", self.file_path)
        super().replace_text(text)
