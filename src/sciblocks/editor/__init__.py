"""Editor package."""

from .logic import (
    BibtexTemplate,
    CitationTrigger,
    EditEffect,
    bib_editor_blocks_to_source,
    blocks_to_source,
    create_bibtex_template,
    detect_citation_trigger,
    editor_blocks_to_source,
    infer_source_format,
    is_closed_bibtex_entry_block,
    normalize_edited_block_input,
    source_to_bib_editor_blocks,
    source_to_editor_blocks,
)

__all__ = [
    "BibtexTemplate",
    "CitationTrigger",
    "EditEffect",
    "bib_editor_blocks_to_source",
    "blocks_to_source",
    "create_bibtex_template",
    "detect_citation_trigger",
    "editor_blocks_to_source",
    "infer_source_format",
    "is_closed_bibtex_entry_block",
    "normalize_edited_block_input",
    "source_to_bib_editor_blocks",
    "source_to_editor_blocks",
]
