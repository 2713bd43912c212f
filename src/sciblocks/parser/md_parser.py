"""Markdown parser: ``#`` headings split the source into article blocks."""

from __future__ import annotations

import re

from .base import ArticleBlock, assemble_blocks, normalize_newlines

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*$")


class MarkdownParser:
    """Parse Markdown source text into the block model."""

    def parse(self, text: str) -> list[ArticleBlock]:
        return parse_markdown_to_blocks(text)


def parse_markdown_to_blocks(text: str) -> list[ArticleBlock]:
    lines = normalize_newlines(text).split("\n")
    return assemble_blocks(lines, _match_heading)


def _match_heading(line: str) -> tuple[int, str, str] | None:
    m = _HEADING_RE.match(line)
    if not m:
        return None
    return len(m.group(1)), m.group(2), ""
