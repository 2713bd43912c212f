"""Inline citation chips and IEEE-style reference lists."""

from __future__ import annotations

import re
from collections.abc import Iterable

from .bibtex import BibliographyEntry, clean_field_value

_AUTHOR_SPLIT_RE = re.compile(r"\s+and\s+", re.IGNORECASE)


def split_author_list(author_field: str | None) -> list[str]:
    if not author_field:
        return []
    authors = (clean_field_value(author) for author in _AUTHOR_SPLIT_RE.split(author_field))
    return [author for author in authors if author]


def first_author_surname(author_field: str | None) -> str | None:
    authors = split_author_list(author_field)
    if not authors:
        return None
    first = authors[0]
    if "," in first:
        return first.split(",", 1)[0].strip() or None
    return first.split()[-1]


def format_citation_chip(entry: BibliographyEntry) -> str:
    """Short inline label: ``Surname, Year``, ``key, Year`` or ``key``."""
    surname = first_author_surname(entry.author)
    if surname and entry.year:
        return f"{surname}, {entry.year}"
    if entry.year:
        return f"{entry.key}, {entry.year}"
    return entry.key


def format_citation_number(number: int) -> str:
    return f"[{number}]"


def format_authors_for_reference(author_field: str | None) -> str:
    authors = split_author_list(author_field)
    if not authors:
        return "Unknown author"
    if len(authors) >= 3:
        return f"{authors[0]} et al."
    if len(authors) == 2:
        return f"{authors[0]} and {authors[1]}"
    return authors[0]


def format_reference_ieee(entry: BibliographyEntry) -> str:
    """One IEEE reference without its ``[n]`` label."""
    authors = format_authors_for_reference(entry.author)
    title = f'"{entry.title}"' if entry.title else f'"{entry.key}"'
    year = entry.year or "n.d."
    return f"{authors}, {title}, {year}."


def format_bibliography_ieee(entries: Iterable[BibliographyEntry]) -> list[str]:
    return [
        f"{format_citation_number(index)} {format_reference_ieee(entry)}"
        for index, entry in enumerate(entries, start=1)
    ]
