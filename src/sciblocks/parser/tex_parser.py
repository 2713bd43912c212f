"""TeX parser: sectioning commands split the source into article blocks."""

from __future__ import annotations

import re

from .base import ArticleBlock, assemble_blocks, normalize_newlines

_SECTION_LEVELS = {
    "section": 1,
    "subsection": 2,
    "subsubsection": 3,
}

_SECTION_RE = re.compile(r"^\s*\\(section|subsection|subsubsection)\*?\s*\{")


class TeXParser:
    """Parse TeX source text into the block model."""

    def parse(self, text: str) -> list[ArticleBlock]:
        return parse_tex_to_blocks(text)


def parse_tex_to_blocks(text: str) -> list[ArticleBlock]:
    lines = normalize_newlines(text).split("\n")
    return assemble_blocks(lines, _match_section)


def _match_section(line: str) -> tuple[int, str, str] | None:
    match = _SECTION_RE.match(line)
    if not match:
        return None
    title, end = read_balanced_braces(line, match.end() - 1)
    if end > len(line) or line[end - 1] != "}":
        # Unterminated argument: treat the line as ordinary content.
        return None
    return _SECTION_LEVELS[match.group(1)], title.strip(), line[end:].strip()


def read_balanced_braces(text: str, brace_start: int) -> tuple[str, int]:
    """Return the body of the brace group opening at ``brace_start`` and the index past it."""
    if brace_start >= len(text) or text[brace_start] != "{":
        return "", brace_start
    depth = 0
    chars = []
    i = brace_start
    while i < len(text):
        ch = text[i]
        if ch == "{" and (i == 0 or text[i - 1] != "\\"):
            depth += 1
            if depth > 1:
                chars.append(ch)
        elif ch == "}" and (i == 0 or text[i - 1] != "\\"):
            depth -= 1
            if depth == 0:
                return "".join(chars), i + 1
            chars.append(ch)
        else:
            if depth >= 1:
                chars.append(ch)
        i += 1
    return "".join(chars), i + 1
