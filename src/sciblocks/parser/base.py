"""Core document model: leveled article blocks and their normalization rules."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal, Protocol

logger = logging.getLogger(__name__)

MAX_BLOCKS = 200
MAX_HEADING_LENGTH = 200
MAX_CONTENT_LENGTH = 20_000

SourceFormat = Literal["markdown", "tex"]
BlockKind = Literal["paragraph", "h1", "h2", "h3"]

_LINE_BREAK_RE = re.compile(r"\r\n?")


@dataclass(slots=True, frozen=True)
class ArticleBlock:
    level: int
    heading: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "heading": self.heading, "content": self.content}


@dataclass(slots=True)
class EditorBlock:
    """One editable line-level unit: a heading or a single paragraph."""

    id: str
    kind: BlockKind
    text: str


class Parser(Protocol):
    def parse(self, text: str) -> list[ArticleBlock]:  # pragma: no cover - structural protocol
        """Parse source text into article blocks."""


def normalize_newlines(text: str) -> str:
    return _LINE_BREAK_RE.sub("\n", text)


def clamp_level(level: int) -> int:
    if level < 2:
        return 1
    if level > 6:
        return 6
    return level


def _normalize_heading(heading: str, index: int) -> str:
    trimmed = heading.strip()
    if not trimmed:
        return f"Section {index + 1}"
    return trimmed[:MAX_HEADING_LENGTH].rstrip()


def _normalize_content(content: str) -> str:
    return normalize_newlines(content).strip()[:MAX_CONTENT_LENGTH].rstrip()


def normalize_block(block: ArticleBlock, index: int) -> ArticleBlock:
    """Apply level, heading and content invariants to a single block.

    ``index`` is the block's position in the list it will be stored in; it
    only feeds the ``Section N`` default for a blank heading.
    """
    return ArticleBlock(
        level=clamp_level(int(block.level)),
        heading=_normalize_heading(block.heading, index),
        content=_normalize_content(block.content),
    )


def assemble_blocks(
    lines: list[str],
    match_heading: Callable[[str], tuple[int, str, str] | None],
) -> list[ArticleBlock]:
    """Accumulate lines into blocks, splitting wherever ``match_heading`` hits.

    ``match_heading`` returns ``(level, heading, trailing_content)`` for a
    section line and ``None`` otherwise. Content before the first heading is
    kept under a blank heading, which normalization turns into ``Section N``.
    """
    blocks: list[ArticleBlock] = []
    current_heading: str | None = None
    current_level = 1
    content_lines: list[str] = []

    def has_text() -> bool:
        return any(line.strip() for line in content_lines)

    def flush() -> None:
        if current_heading is None and not has_text():
            return
        block = ArticleBlock(
            level=current_level,
            heading=current_heading or "",
            content="\n".join(content_lines),
        )
        blocks.append(normalize_block(block, len(blocks)))

    for line in lines:
        hit = match_heading(line)
        if hit is None:
            content_lines.append(line)
            continue

        flush()
        current_level, current_heading, trailing = hit
        content_lines = [trailing] if trailing.strip() else []
        if len(blocks) >= MAX_BLOCKS:
            break

    flush()
    return blocks[:MAX_BLOCKS]


def _coerce_block(item: Any) -> ArticleBlock | None:
    if isinstance(item, ArticleBlock):
        item = item.to_dict()
    if not isinstance(item, Mapping):
        return None

    level = item.get("level")
    heading = item.get("heading")
    content = item.get("content")

    # bool is an int subclass but never a valid level.
    if isinstance(level, bool) or not isinstance(level, (int, float)):
        return None
    if not isinstance(heading, str) or not isinstance(content, str):
        return None
    if level != level or level in (float("inf"), float("-inf")):
        return None

    return ArticleBlock(level=int(level), heading=heading, content=content)


def normalize_blocks(raw: Any) -> list[ArticleBlock]:
    """Parse-or-drop boundary for untrusted block lists.

    Anything that is not a list yields ``[]``. Items with missing or mistyped
    fields are dropped silently; the rest are normalized and the result is
    capped at ``MAX_BLOCKS``.
    """
    if not isinstance(raw, (list, tuple)):
        return []

    blocks: list[ArticleBlock] = []
    dropped = 0
    for item in raw:
        candidate = _coerce_block(item)
        if candidate is None:
            dropped += 1
            continue

        blocks.append(normalize_block(candidate, len(blocks)))
        if len(blocks) >= MAX_BLOCKS:
            break

    if dropped:
        logger.debug("Dropped %d malformed block(s)", dropped)
    return blocks
