"""Editor-facing helpers: the per-paragraph projection and inline-edit detection."""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from sciblocks.citations.bibtex import parse_bibtex_entries, split_bibtex_source_blocks
from sciblocks.parser import parser_for
from sciblocks.parser.base import ArticleBlock, BlockKind, EditorBlock, SourceFormat, normalize_newlines

CitationFormat = Literal["bracket", "latex", "latex-inline"]

_MD_HEADING_RE = re.compile(r"^(#{1,3})\s+(.+)$")
_MD_INLINE_MATH_RE = re.compile(r"^\\\((.+)\\\)$")
_TEX_HEADING_RE = re.compile(r"^\\(section|subsection|subsubsection)\{([^}]*)\}\s*$")
_TEX_DISPLAY_MATH_RE = re.compile(r"^\\\[(.+)\\\]$")

_TEX_COMMAND_KINDS: dict[str, BlockKind] = {
    "section": "h1",
    "subsection": "h2",
    "subsubsection": "h3",
}

_KEY_CHARS_RE = re.compile(r"[A-Za-z0-9:_-]*")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")


@dataclass(slots=True, frozen=True)
class EditEffect:
    kind: BlockKind
    text: str


@dataclass(slots=True, frozen=True)
class CitationTrigger:
    start: int
    end: int
    query: str
    format: CitationFormat


@dataclass(slots=True, frozen=True)
class BibtexTemplate:
    text: str
    selection_start: int
    selection_end: int


def new_id() -> str:
    return uuid.uuid4().hex


def infer_source_format(name: str, current: SourceFormat | None) -> SourceFormat:
    if current:
        return current
    return "tex" if name.lower().endswith(".tex") else "markdown"


def level_to_kind(level: int) -> BlockKind:
    # The editor only has three heading sizes; deeper levels collapse into h3.
    if level <= 1:
        return "h1"
    if level == 2:
        return "h2"
    return "h3"


def kind_to_level(kind: BlockKind) -> int | None:
    return {"h1": 1, "h2": 2, "h3": 3}.get(kind)


def heading_hash_to_kind(marker: str) -> BlockKind:
    return level_to_kind(len(marker))


def kind_to_markdown_prefix(kind: BlockKind) -> str:
    level = kind_to_level(kind)
    return "#" * level + " " if level else ""


def kind_to_tex_prefix(kind: BlockKind) -> str:
    command = {"h1": "section", "h2": "subsection", "h3": "subsubsection"}.get(kind)
    return f"\\{command}{{" if command else ""


def normalize_edited_block_input(block: EditorBlock, raw_text: str, source_format: SourceFormat) -> EditEffect:
    """Classify one freshly typed line without looking at its neighbours."""
    if source_format == "tex":
        heading = _TEX_HEADING_RE.match(raw_text)
        if heading:
            return EditEffect(kind=_TEX_COMMAND_KINDS[heading.group(1)], text=heading.group(2))
        display = _TEX_DISPLAY_MATH_RE.match(raw_text)
        if display:
            return EditEffect(kind=block.kind, text=f"$${display.group(1)}$$")
        return EditEffect(kind=block.kind, text=raw_text)

    heading = _MD_HEADING_RE.match(raw_text)
    if heading:
        return EditEffect(kind=heading_hash_to_kind(heading.group(1)), text=heading.group(2))
    inline = _MD_INLINE_MATH_RE.match(raw_text)
    if inline:
        return EditEffect(kind=block.kind, text=f"${inline.group(1)}$")
    return EditEffect(kind=block.kind, text=raw_text)


def _is_key_query(query: str) -> bool:
    return _KEY_CHARS_RE.fullmatch(query) is not None


def detect_citation_trigger(text: str, cursor: int) -> CitationTrigger | None:
    """Find a half-typed citation ending at ``cursor``.

    Recognizes ``@key`` / ``[@key`` (bracket), ``\\key`` / ``\\cite{key``
    (latex) and a key after a comma inside an open ``\\cite{`` (latex-inline).
    """
    before = text[:cursor]

    cite = before.rfind("\\cite{")
    if cite != -1 and "}" not in before[cite:]:
        args_start = cite + len("\\cite{")
        comma = before.rfind(",", args_start)
        if comma != -1:
            query = before[comma + 1:].strip()
            if _is_key_query(query):
                return CitationTrigger(start=comma + 1, end=cursor, query=query, format="latex-inline")
            return None
        query = before[args_start:]
        if _is_key_query(query):
            return CitationTrigger(start=cite, end=cursor, query=query, format="latex")
        return None

    at = before.rfind("@")
    backslash = before.rfind("\\")

    if at != -1 and at > backslash:
        prefix = before[at - 1] if at > 0 else ""
        has_bracket = prefix == "["
        # An "@" glued to a word (e.g. an e-mail address) is not a citation.
        if not has_bracket and prefix and _KEY_CHARS_RE.fullmatch(prefix):
            return None
        query = before[at + 1:]
        if not _is_key_query(query):
            return None
        return CitationTrigger(start=at - 1 if has_bracket else at, end=cursor, query=query, format="bracket")

    if backslash != -1:
        query = before[backslash + 1:]
        if not _is_key_query(query):
            return None
        return CitationTrigger(start=backslash, end=cursor, query=query, format="latex")

    return None


def source_to_editor_blocks(source: str, source_format: SourceFormat) -> list[EditorBlock]:
    """Project source text onto editor blocks: a heading plus one block per paragraph."""
    editor_blocks: list[EditorBlock] = []

    for block in parser_for(source_format).parse(source):
        if block.heading.strip():
            editor_blocks.append(EditorBlock(id=new_id(), kind=level_to_kind(block.level), text=block.heading))

        paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(block.content) if p.strip()]
        if not paragraphs:
            editor_blocks.append(EditorBlock(id=new_id(), kind="paragraph", text=""))
        for paragraph in paragraphs:
            editor_blocks.append(EditorBlock(id=new_id(), kind="paragraph", text=paragraph))

    if not editor_blocks:
        editor_blocks.append(EditorBlock(id=new_id(), kind="paragraph", text=""))
    return editor_blocks


def editor_blocks_to_source(blocks: Iterable[EditorBlock], source_format: SourceFormat) -> str:
    parts: list[str] = []
    for block in blocks:
        text = normalize_newlines(block.text)
        if not text.strip() and block.kind != "paragraph":
            continue
        if source_format == "tex":
            parts.append(text if block.kind == "paragraph" else f"{kind_to_tex_prefix(block.kind)}{text}}}")
        else:
            parts.append(f"{kind_to_markdown_prefix(block.kind)}{text}")
    return "\n\n".join(parts).strip()


def format_heading(level: int, heading: str, source_format: SourceFormat) -> str:
    """Render a heading line, clamping the level into the 1..3 range both formats share."""
    kind = level_to_kind(level)
    if source_format == "tex":
        return f"{kind_to_tex_prefix(kind)}{heading}}}"
    return f"{kind_to_markdown_prefix(kind)}{heading}"


def blocks_to_source(blocks: Iterable[ArticleBlock], source_format: SourceFormat) -> str:
    parts = []
    for block in blocks:
        heading = format_heading(block.level, block.heading, source_format)
        content = block.content.strip()
        parts.append(f"{heading}\n\n{content}" if content else heading)
    return "\n\n".join(parts).strip()


# ---------------------------------------------------------------------------
# BibTeX editing
# ---------------------------------------------------------------------------

def source_to_bib_editor_blocks(source: str) -> list[EditorBlock]:
    chunks = split_bibtex_source_blocks(source)
    if not chunks:
        return [EditorBlock(id=new_id(), kind="paragraph", text="")]
    return [EditorBlock(id=new_id(), kind="paragraph", text=chunk) for chunk in chunks]


def bib_editor_blocks_to_source(blocks: Iterable[EditorBlock]) -> str:
    texts = (normalize_newlines(block.text).strip() for block in blocks)
    return "\n\n".join(text for text in texts if text).strip()


def is_closed_bibtex_entry_block(text: str) -> bool:
    """True when ``text`` is exactly one complete BibTeX entry."""
    normalized = normalize_newlines(text).strip()
    if not normalized or not re.search(r"[})]\s*$", normalized):
        return False
    parsed = parse_bibtex_entries(normalized)
    return len(parsed) == 1 and parsed[0].raw_bibtex == normalized


def create_bibtex_template(source: str) -> BibtexTemplate:
    used = {entry.key for entry in parse_bibtex_entries(source)}
    key = "citation_key"
    suffix = 2
    while key in used:
        key = f"citation_key_{suffix}"
        suffix += 1

    text = f"@article{{{key},\n  author = {{}},\n  title  = {{}},\n  year   = {{}},\n}}"
    cursor = text.index("author = {") + len("author = {")
    return BibtexTemplate(text=text, selection_start=cursor, selection_end=cursor)
