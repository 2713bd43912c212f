"""Parser package."""

from .base import (
    MAX_BLOCKS,
    MAX_CONTENT_LENGTH,
    MAX_HEADING_LENGTH,
    ArticleBlock,
    EditorBlock,
    Parser,
    normalize_block,
    normalize_blocks,
)
from .md_parser import MarkdownParser, parse_markdown_to_blocks
from .serialize import deserialize_blocks, serialize_blocks
from .tex_parser import TeXParser, parse_tex_to_blocks

__all__ = [
    "MAX_BLOCKS",
    "MAX_CONTENT_LENGTH",
    "MAX_HEADING_LENGTH",
    "ArticleBlock",
    "EditorBlock",
    "MarkdownParser",
    "Parser",
    "TeXParser",
    "deserialize_blocks",
    "normalize_block",
    "normalize_blocks",
    "parse_markdown_to_blocks",
    "parse_tex_to_blocks",
    "parser_for",
    "serialize_blocks",
]


def parser_for(source_format: str) -> Parser:
    """Pick the parser for a source format; anything but ``tex`` reads as Markdown."""
    return TeXParser() if source_format == "tex" else MarkdownParser()
