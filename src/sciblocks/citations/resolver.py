"""Resolve cited keys against precedence-ordered bibliography sources."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .bibtex import MAX_BIB_ENTRIES, BibliographyEntry
from .keys import extract_citation_keys_from_text

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ResolvedBibliography:
    """Entries actually cited by a document, numbered 1..N in citation order.

    This numbering is the only one inline markers and the reference list
    should use.
    """

    citation_keys: list[str] = field(default_factory=list)
    entries: list[BibliographyEntry] = field(default_factory=list)
    missing_keys: list[str] = field(default_factory=list)

    def numbering(self) -> dict[str, int]:
        return {entry.key: index + 1 for index, entry in enumerate(self.entries)}

    def number_for(self, key: str) -> int | None:
        return self.numbering().get(key)

    def lookup(self, key: str) -> BibliographyEntry | None:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None


def _index_source(source: Iterable[BibliographyEntry]) -> dict[str, BibliographyEntry]:
    by_key: dict[str, BibliographyEntry] = {}
    for entry in source:
        by_key.setdefault(entry.key, entry)
    return by_key


def merge_bibliography_sources(*sources: Iterable[BibliographyEntry]) -> list[BibliographyEntry]:
    """Concatenate sources with first-wins deduplication, e.g. all project ``.bib`` files."""
    merged: dict[str, BibliographyEntry] = {}
    for source in sources:
        for entry in source:
            if entry.key not in merged:
                merged[entry.key] = entry
            if len(merged) >= MAX_BIB_ENTRIES:
                return list(merged.values())
    return list(merged.values())


def resolve_bibliography(
    citation_keys: Iterable[str],
    *sources: Iterable[BibliographyEntry],
) -> ResolvedBibliography:
    """Look each key up in the first source that has it.

    Keys found nowhere are reported in ``missing_keys``; they never fail
    resolution.
    """
    indexes = [_index_source(source) for source in sources]

    unique_keys = list(dict.fromkeys(citation_keys))

    resolved: list[BibliographyEntry] = []
    missing: list[str] = []
    for key in unique_keys:
        entry = next((index[key] for index in indexes if key in index), None)
        if entry is None:
            missing.append(key)
        else:
            resolved.append(entry)

    if missing:
        logger.debug("Unresolved citation keys: %s", ", ".join(missing))
    return ResolvedBibliography(citation_keys=unique_keys, entries=resolved, missing_keys=missing)


def resolve_document_bibliography(
    text: str,
    *sources: Iterable[BibliographyEntry],
) -> ResolvedBibliography:
    return resolve_bibliography(extract_citation_keys_from_text(text), *sources)
