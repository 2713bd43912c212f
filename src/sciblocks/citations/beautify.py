"""Reformat BibTeX source for editing, keeping the text between entries."""

from __future__ import annotations

import re

from sciblocks.parser.base import normalize_newlines

from .bibtex import iter_bibtex_spans

_ENTRY_HEADER_RE = re.compile(r"^@([A-Za-z]+)\s*([{(])\s*([^,\s]+)\s*,")


def split_bibtex_fields(payload: str) -> list[str]:
    """Split an entry body on commas outside braces and quotes."""
    fields: list[str] = []
    depth = 0
    in_quote = False
    segment_start = 0

    for i, char in enumerate(payload):
        if char == '"' and (i == 0 or payload[i - 1] != "\\"):
            in_quote = not in_quote
            continue
        if in_quote:
            continue
        if char == "{":
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
        elif char == "," and depth == 0:
            chunk = payload[segment_start:i].strip()
            if chunk:
                fields.append(chunk)
            segment_start = i + 1

    tail = payload[segment_start:].strip()
    if tail:
        fields.append(tail)
    return fields


def _field_name(field: str) -> str | None:
    eq_index = field.find("=")
    if eq_index == -1:
        return None
    return field[:eq_index].strip()


def format_bibtex_field(field: str, name_width: int) -> str:
    name = _field_name(field)
    if name is None:
        return f"  {field.strip()}"
    value = field[field.index("=") + 1:].strip()
    value = re.sub(r"\n\s*", " ", normalize_newlines(value))
    return f"  {name.ljust(name_width)} = {value}"


def format_bibtex_entry(raw_bibtex: str) -> str:
    normalized = normalize_newlines(raw_bibtex).strip()
    header = _ENTRY_HEADER_RE.match(normalized)
    if not header:
        return normalized

    entry_type, opener, key = header.group(1), header.group(2), header.group(3).strip()
    closer = "}" if opener == "{" else ")"
    body = normalized[header.end():-1].strip()
    fields = split_bibtex_fields(body)
    if not fields:
        return f"@{entry_type}{opener}{key}{closer}"

    width = max((len(name) for name in map(_field_name, fields) if name is not None), default=0)
    lines = [format_bibtex_field(field, width) for field in fields]
    lines = [line + "," for line in lines[:-1]] + lines[-1:]
    return f"@{entry_type}{opener}{key},\n" + "\n".join(lines) + f"\n{closer}"


def format_bibtex_source(raw: str) -> str:
    normalized = normalize_newlines(raw)
    spans = list(iter_bibtex_spans(normalized))
    if not spans:
        return normalized.strip()

    chunks: list[str] = []
    cursor = 0
    for span in spans:
        between = normalized[cursor:span.start].strip()
        if between:
            chunks.append(between)
        chunks.append(format_bibtex_entry(span.raw_bibtex))
        cursor = span.end

    tail = normalized[cursor:].strip()
    if tail:
        chunks.append(tail)
    return "\n\n".join(chunks).strip()
