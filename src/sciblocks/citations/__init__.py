"""Citation package."""

from .beautify import format_bibtex_source
from .bibtex import (
    BibliographyEntry,
    compact_bibliography,
    deserialize_bibliography,
    normalize_bibliography,
    parse_bibtex_entries,
    serialize_bibliography,
    split_bibtex_source_blocks,
)
from .formatter import format_bibliography_ieee, format_citation_chip
from .keys import extract_citation_keys_from_blocks, extract_citation_keys_from_text
from .resolver import (
    ResolvedBibliography,
    merge_bibliography_sources,
    resolve_bibliography,
    resolve_document_bibliography,
)

__all__ = [
    "BibliographyEntry",
    "ResolvedBibliography",
    "compact_bibliography",
    "deserialize_bibliography",
    "extract_citation_keys_from_blocks",
    "extract_citation_keys_from_text",
    "format_bibliography_ieee",
    "format_bibtex_source",
    "format_citation_chip",
    "merge_bibliography_sources",
    "normalize_bibliography",
    "parse_bibtex_entries",
    "resolve_bibliography",
    "resolve_document_bibliography",
    "serialize_bibliography",
    "split_bibtex_source_blocks",
]
