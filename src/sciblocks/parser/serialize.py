"""JSON interchange encoding for block lists."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from .base import ArticleBlock, normalize_blocks

logger = logging.getLogger(__name__)


def serialize_blocks(blocks: Iterable[ArticleBlock]) -> str:
    normalized = normalize_blocks(list(blocks))
    return json.dumps([block.to_dict() for block in normalized], ensure_ascii=False)


def deserialize_blocks(raw: str) -> list[ArticleBlock]:
    """Decode ``serialize_blocks`` output.

    An empty result means the state could not be recovered, not that the
    document is empty: callers should not overwrite stored data with it.
    """
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Could not decode block payload: %s", exc)
        return []
    return normalize_blocks(parsed)
