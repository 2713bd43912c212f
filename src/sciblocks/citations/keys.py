"""Citation key extraction from document text."""

from __future__ import annotations

import re
from collections.abc import Iterable

from sciblocks.parser.base import ArticleBlock

KEY_PATTERN = r"[A-Za-z0-9:_-]+"

BRACKET_CITATION_RE = re.compile(rf"\[@({KEY_PATTERN})\]")
LATEX_CITATION_RE = re.compile(r"\\cite\{([^}]*)\}")


def extract_citation_keys_from_text(text: str) -> list[str]:
    """Return cited keys, deduplicated in first-occurrence order.

    ``[@key]`` markers are scanned first, then ``\\cite{a, b}`` commands; a key
    found by both scans keeps its bracket position.
    """
    keys: list[str] = []
    seen: set[str] = set()

    def add(key: str) -> None:
        if key and key not in seen:
            seen.add(key)
            keys.append(key)

    for match in BRACKET_CITATION_RE.finditer(text):
        add(match.group(1))

    for match in LATEX_CITATION_RE.finditer(text):
        for key in match.group(1).split(","):
            add(key.strip())

    return keys


def extract_citation_keys_from_blocks(blocks: Iterable[ArticleBlock]) -> list[str]:
    keys: list[str] = []
    seen: set[str] = set()
    for block in blocks:
        for key in extract_citation_keys_from_text(f"{block.heading}\n{block.content}"):
            if key not in seen:
                seen.add(key)
                keys.append(key)
    return keys
