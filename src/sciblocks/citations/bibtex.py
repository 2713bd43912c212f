"""BibTeX entry scanning, field extraction and bibliography payload handling."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from sciblocks.parser.base import normalize_newlines

logger = logging.getLogger(__name__)

MAX_BIB_ENTRIES = 500

_HEADER_RE = re.compile(r"@([A-Za-z]+)\s*([{(])")
_CLOSERS = {"{": "}", "(": ")"}


@dataclass(slots=True, frozen=True)
class BibliographyEntry:
    key: str
    raw_bibtex: str
    title: str | None = None
    author: str | None = None
    year: str | None = None


@dataclass(slots=True, frozen=True)
class BibtexSpan:
    key: str
    raw_bibtex: str
    start: int
    end: int


def iter_bibtex_spans(raw: str) -> Iterator[BibtexSpan]:
    """Locate every balanced ``@type{key, ...}`` / ``@type(key, ...)`` record.

    The key is the text before the first top-level comma of the record.
    Depth counts only the entry's own delimiter pair and ignores characters
    inside ``"..."``. Records that close without a key (``@comment{...}``,
    ``@string{...}``) are skipped whole. Records that never balance are
    skipped and scanning resumes right after their key.
    """
    cursor = 0
    while cursor < len(raw):
        at = raw.find("@", cursor)
        if at == -1:
            return

        header = _HEADER_RE.match(raw, at)
        if not header:
            cursor = at + 1
            continue

        opener = header.group(2)
        closer = _CLOSERS[opener]
        payload_start = header.end()

        depth = 1
        in_quote = False
        key_end = -1
        idx = payload_start
        while idx < len(raw) and depth > 0:
            ch = raw[idx]
            if ch == '"' and raw[idx - 1] != "\\":
                in_quote = not in_quote
            elif not in_quote:
                if ch == opener:
                    depth += 1
                elif ch == closer:
                    depth -= 1
                elif ch == "," and depth == 1 and key_end == -1:
                    key_end = idx
            idx += 1

        if key_end == -1:
            if depth == 0:
                logger.debug("Skipping keyless BibTeX record @%s at offset %d", header.group(1), at)
                cursor = idx
            else:
                cursor = payload_start
            continue

        key = raw[payload_start:key_end].strip()
        if not key:
            cursor = key_end + 1
            continue

        if depth != 0:
            logger.debug("Skipping unbalanced BibTeX entry %r at offset %d", key, at)
            cursor = key_end + 1
            continue

        yield BibtexSpan(key=key, raw_bibtex=raw[at:idx].strip(), start=at, end=idx)
        cursor = idx


def clean_field_value(value: str) -> str:
    value = re.sub(r"\s+", " ", value)
    value = re.sub(r"^\{+", "", value)
    value = re.sub(r"\}+$", "", value)
    value = re.sub(r'^"+', "", value)
    value = re.sub(r'"+$', "", value)
    return value.strip()


def read_field(raw_bibtex: str, field: str) -> str | None:
    """Read a ``field = {...}`` or ``field = "..."`` value.

    The value pattern is single-level: ``{Title with {Nested} Braces}`` reads
    as ``Title with {Nested``.
    """
    match = re.search(
        rf"{re.escape(field)}\s*=\s*(\{{.*?\}}|\".*?\")",
        raw_bibtex,
        flags=re.IGNORECASE | re.DOTALL,
    )
    if not match:
        return None
    return clean_field_value(match.group(1)) or None


def parse_raw_bibtex_entry(raw_bibtex: str, key: str) -> BibliographyEntry:
    return BibliographyEntry(
        key=key,
        raw_bibtex=raw_bibtex.strip(),
        title=read_field(raw_bibtex, "title"),
        author=read_field(raw_bibtex, "author"),
        year=read_field(raw_bibtex, "year"),
    )


def parse_bibtex_entries(raw: str) -> list[BibliographyEntry]:
    entries: list[BibliographyEntry] = []
    seen: set[str] = set()
    for span in iter_bibtex_spans(raw):
        if span.key in seen:
            logger.debug("Ignoring duplicate BibTeX key %r", span.key)
            continue
        seen.add(span.key)
        entries.append(parse_raw_bibtex_entry(span.raw_bibtex, span.key))
        if len(entries) >= MAX_BIB_ENTRIES:
            break
    return entries


def split_bibtex_source_blocks(raw: str) -> list[str]:
    """Split BibTeX source into interstitial text and entry chunks, in order."""
    normalized = normalize_newlines(raw)
    spans = list(iter_bibtex_spans(normalized))
    if not spans:
        single = normalized.strip()
        return [single] if single else []

    chunks: list[str] = []
    cursor = 0
    for span in spans:
        between = normalized[cursor:span.start].strip()
        if between:
            chunks.append(between)
        chunks.append(span.raw_bibtex)
        cursor = span.end

    tail = normalized[cursor:].strip()
    if tail:
        chunks.append(tail)
    return chunks


# ---------------------------------------------------------------------------
# Stored bibliography payloads
# ---------------------------------------------------------------------------

def _payload_field(item: Any, *names: str) -> str | None:
    if isinstance(item, BibliographyEntry):
        item = {"key": item.key, "raw_bibtex": item.raw_bibtex}
    if not isinstance(item, Mapping):
        return None
    for name in names:
        value = item.get(name)
        if isinstance(value, str):
            return value.strip()
    return None


def normalize_bibliography(raw: Any) -> list[BibliographyEntry]:
    """Parse-or-drop boundary for stored bibliography lists.

    Each item needs a non-blank string ``key`` and ``rawBibtex`` (or
    ``raw_bibtex``); fields are re-derived from the raw text.
    """
    if not isinstance(raw, (list, tuple)):
        return []

    result: list[BibliographyEntry] = []
    seen: set[str] = set()
    for item in raw:
        key = _payload_field(item, "key")
        raw_bibtex = _payload_field(item, "rawBibtex", "raw_bibtex")
        if not key or not raw_bibtex or key in seen:
            continue
        seen.add(key)
        result.append(parse_raw_bibtex_entry(raw_bibtex, key))
        if len(result) >= MAX_BIB_ENTRIES:
            break
    return result


def compact_bibliography(entries: Iterable[BibliographyEntry]) -> list[BibliographyEntry]:
    """Strip derived fields, keeping only deduplicated key and raw text."""
    result: list[BibliographyEntry] = []
    seen: set[str] = set()
    for entry in entries:
        key = (entry.key or "").strip()
        raw_bibtex = (entry.raw_bibtex or "").strip()
        if not key or not raw_bibtex or key in seen:
            continue
        seen.add(key)
        result.append(BibliographyEntry(key=key, raw_bibtex=raw_bibtex))
        if len(result) >= MAX_BIB_ENTRIES:
            break
    return result


def serialize_bibliography(entries: Iterable[BibliographyEntry]) -> str:
    payload = [{"key": e.key, "rawBibtex": e.raw_bibtex} for e in compact_bibliography(entries)]
    return json.dumps(payload, ensure_ascii=False)


def deserialize_bibliography(raw: str) -> list[BibliographyEntry]:
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Could not decode bibliography payload: %s", exc)
        return []
    return normalize_bibliography(parsed)
