"""Node addresses: rendering, parsing and walking a document."""

from __future__ import annotations

import json

from jnode.exceptions import AddressResolutionError, PathSyntaxError

ROOT_SYMBOL = "$"


def render_path(path) -> str:
    """Render a path as $["key"][0]. The empty path renders as $."""
    if not path:
        return ROOT_SYMBOL
    segments = []
    for seg in path:
        if isinstance(seg, int) and not isinstance(seg, bool):
            segments.append(f"[{seg}]")
        else:
            segments.append(f"[{json.dumps(str(seg), ensure_ascii=False)}]")
    return ROOT_SYMBOL + "".join(segments)


def parse_path(text: str) -> list[str | int]:
    """Parse the output of render_path back into segments.

    Supports:
      $            (root)
      ["key"]      (object key, JSON string escapes allowed)
      ['key']      (object key, no escapes)
      [n]          (array index)
    """
    text = text.strip()
    if not text.startswith(ROOT_SYMBOL):
        raise PathSyntaxError("path must start with $")

    rest = text[1:]
    path: list[str | int] = []
    decoder = json.JSONDecoder()
    while rest:
        if not rest.startswith("["):
            raise PathSyntaxError(f"expected '[' at {rest!r}")
        body = rest[1:]
        if body.startswith('"'):
            try:
                key, end = decoder.raw_decode(body)
            except json.JSONDecodeError as e:
                raise PathSyntaxError(f"bad key: {e.msg}") from e
            path.append(key)
            body = body[end:]
        elif body.startswith("'"):
            end = body.find("'", 1)
            if end == -1:
                raise PathSyntaxError("unclosed quote")
            path.append(body[1:end])
            body = body[end + 1 :]
        else:
            end = body.find("]")
            if end == -1:
                raise PathSyntaxError("unclosed bracket")
            index_str = body[:end].strip()
            if not index_str.isdigit():
                raise PathSyntaxError(f"bad index: {index_str!r}")
            path.append(int(index_str))
            body = body[end:]
        if not body.startswith("]"):
            raise PathSyntaxError("unclosed bracket")
        rest = body[1:]
    return path


def _step(current: object, key: str | int, path) -> object:
    if isinstance(current, dict):
        if key not in current:
            raise AddressResolutionError(path, f"missing key {key!r}")
        return current[key]
    if isinstance(current, list):
        if not isinstance(key, int) or isinstance(key, bool):
            raise AddressResolutionError(path, f"non-index {key!r} into array")
        if not 0 <= key < len(current):
            raise AddressResolutionError(path, f"index {key} out of range")
        return current[key]
    raise AddressResolutionError(path, f"cannot descend into {type(current).__name__}")


def final_key(path) -> str | int:
    if not path:
        raise AddressResolutionError([], "root has no key")
    return path[-1]


def resolve_parent(root: object, path) -> dict | list:
    """Return the container that holds the node addressed by path."""
    if not path:
        raise AddressResolutionError([], "root has no parent container")
    current = root
    for key in path[:-1]:
        current = _step(current, key, path)
    if not isinstance(current, (dict, list)):
        raise AddressResolutionError(path, "parent is not a container")
    return current


def resolve_target(root: object, path) -> tuple[dict | list, str | int]:
    """Return (container, key) for path, checking the slot exists."""
    parent = resolve_parent(root, path)
    key = final_key(path)
    _step(parent, key, path)
    return parent, key
