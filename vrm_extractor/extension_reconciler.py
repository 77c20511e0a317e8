"""Recover glTF extensions the decoder may have stored under other keys."""
from collections.abc import Mapping
from typing import Any, Dict, Iterator, Tuple


def _top_level_items(document: Any) -> Iterator[Tuple[str, Any]]:
    if isinstance(document, Mapping):
        yield from document.items()
        return
    for key, value in vars(document).items():
        if not key.startswith("_"):
            yield key, value


def _is_extension_key(key: str) -> bool:
    return "extension" in key or "VRM" in key


def reconcile_extensions(document: Any) -> Dict[str, Any]:
    """Merge a document's extensions with extension-like top-level keys.

    Starts from the document's ``extensions`` mapping, then merges in the
    contents of every top-level key whose name contains ``extension`` or
    ``VRM`` and whose value is a mapping, in document key order. Later keys
    overwrite earlier ones on collision. ``extensions`` matches the name
    filter itself, so its entries are merged again at their position in the
    key order.

    Args:
        document: Decoded document (pygltflib GLTF2 or plain mapping)

    Returns:
        New merged extensions dict
    """
    if isinstance(document, Mapping):
        direct = document.get("extensions")
    else:
        direct = getattr(document, "extensions", None)

    merged: Dict[str, Any] = dict(direct) if isinstance(direct, Mapping) else {}

    found: Dict[str, Any] = {}
    for key, value in _top_level_items(document):
        if _is_extension_key(str(key)) and isinstance(value, Mapping):
            found.update(value)

    merged.update(found)
    return merged
