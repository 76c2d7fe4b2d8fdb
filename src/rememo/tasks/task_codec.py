# src/rememo/tasks/task_codec.py

"""
Versioned JSON codec for the persisted collections.

Format (current):
    {"version": 1, "items": [ {...}, {...} ]}

Older blobs were a bare JSON list; they are read as version 0. All
default-filling for missing fields happens in the model's from_dict(), so a
reader never has to guess at call sites.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

CURRENT_VERSION = 1

T = TypeVar("T")


class CodecError(ValueError):
    """The blob is not a collection this codec can read."""


def encode_collection(items: Iterable[dict[str, Any]]) -> str:
    return json.dumps(
        {"version": CURRENT_VERSION, "items": list(items)},
        ensure_ascii=False,
        separators=(",", ":"),
    )


def _unwrap(raw: str) -> tuple[int, list[Any]]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CodecError(f"malformed JSON: {e}") from e

    if isinstance(data, list):
        return 0, data

    if not isinstance(data, dict):
        raise CodecError(f"unexpected top-level type: {type(data).__name__}")

    version = data.get("version")
    items = data.get("items")
    if not isinstance(version, int) or isinstance(version, bool) or not isinstance(items, list):
        raise CodecError("envelope lacks an integer 'version' or an 'items' list")
    return version, items


def decode_collection(raw: str, build: Callable[[dict[str, Any]], T], *, label: str = "items") -> list[T]:
    """
    Decode a stored blob into model objects.

    Raises CodecError for an unreadable blob. Individual bad records are skipped
    with a warning rather than failing the whole collection.
    """
    version, items = _unwrap(raw)

    if version > CURRENT_VERSION:
        logger.warning(
            "%s blob has version %s (newer than %s); reading best-effort",
            label,
            version,
            CURRENT_VERSION,
        )
    elif version < CURRENT_VERSION:
        logger.info("Migrating %s blob from version %s to %s on read", label, version, CURRENT_VERSION)

    out: list[T] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping %s[%d]: not an object", label, idx)
            continue
        try:
            out.append(build(item))
        except (TypeError, ValueError) as e:
            logger.warning("Skipping %s[%d]: %s", label, idx, e)
    return out
