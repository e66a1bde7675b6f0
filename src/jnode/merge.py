"""Merge buffered node edits into a copy of the full document."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass

from jnode.exceptions import AddressResolutionError, DocumentParseError
from jnode.literal import coerce
from jnode.path import render_path, resolve_target
from jnode.rows import VALUE_FIELD, NodeShape

_LOG = logging.getLogger(__name__)


@dataclass
class CommitResult:
    document: object
    text: str


def load_document(text: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentParseError(f"JSON error: {e.msg} (line {e.lineno})") from e


def dump_document(document: object, indent: int = 2) -> str:
    return json.dumps(document, indent=indent, ensure_ascii=False)


def _merge_fields(target: object, buffer: dict[str, str], path) -> None:
    if not buffer:
        return
    if not isinstance(target, dict):
        raise AddressResolutionError(
            path, f"expected an object, found {type(target).__name__}"
        )
    for key, text in buffer.items():
        target[key] = coerce(text)


def merge_edits(
    document: object,
    path,
    shape: NodeShape,
    buffer: dict[str, str],
) -> object:
    """Return a deep copy of document with the buffer applied at path.

    The input document is never modified. Raises AddressResolutionError
    when path does not reach the node.
    """
    clone = copy.deepcopy(document)

    if shape is NodeShape.SCALAR:
        if VALUE_FIELD not in buffer:
            return clone
        value = coerce(buffer[VALUE_FIELD])
        if not path:
            return value
        parent, key = resolve_target(clone, path)
        parent[key] = value
        return clone

    if not path:
        _merge_fields(clone, buffer, path)
        return clone
    parent, key = resolve_target(clone, path)
    _merge_fields(parent[key], buffer, path)
    return clone


def commit_edits(
    document_text: str,
    path,
    shape: NodeShape,
    buffer: dict[str, str],
    indent: int = 2,
) -> CommitResult:
    """Merge buffer into the latest document text and serialize the result."""
    document = load_document(document_text)
    merged = merge_edits(document, list(path), shape, buffer)
    text = dump_document(merged, indent=indent)
    _LOG.debug("merged %d field(s) at %s", len(buffer), render_path(path))
    return CommitResult(document=merged, text=text)
