"""Tests for BibTeX span scanning, field extraction and the source beautifier."""

from __future__ import annotations

from sciblocks.citations.beautify import format_bibtex_source, split_bibtex_fields
from sciblocks.citations.bibtex import (
    BibliographyEntry,
    compact_bibliography,
    deserialize_bibliography,
    iter_bibtex_spans,
    normalize_bibliography,
    parse_bibtex_entries,
    serialize_bibliography,
    split_bibtex_source_blocks,
)


# ---------------------------------------------------------------------------
# Entry parsing
# ---------------------------------------------------------------------------

def test_single_entry_fields() -> None:
    raw = "@article{key1, title = {Title One}, author = {Author A}, year = {2023}}"
    entries = parse_bibtex_entries(raw)
    assert entries == [
        BibliographyEntry(key="key1", raw_bibtex=raw, title="Title One", author="Author A", year="2023")
    ]


def test_quoted_values() -> None:
    entries = parse_bibtex_entries('@article{key1, title = "Title One", author = "Author A", year = "2023"}')
    assert entries[0].title == "Title One"
    assert entries[0].year == "2023"


def test_nested_braces_truncate_at_first_close() -> None:
    entries = parse_bibtex_entries("@article{key1, title = {Title with {Nested} Braces}, author = {A. Author}}")
    assert len(entries) == 1
    assert entries[0].title == "Title with {Nested"
    assert entries[0].author == "A. Author"


def test_missing_and_bare_fields_are_none() -> None:
    entry = parse_bibtex_entries("@misc{k, year = 2020, note = {x}}")[0]
    assert entry.title is None
    assert entry.author is None
    assert entry.year is None


def test_multiline_field_whitespace_collapsed() -> None:
    entry = parse_bibtex_entries("@book{k,\n  title = {A Long\n     Title},\n}")[0]
    assert entry.title == "A Long Title"


def test_text_between_entries_ignored() -> None:
    raw = """
        Some comment here.
        @article{key1, title = {T1}}
        Middle text, with a comma.
        @book{key2, title = {T2}}
    """
    assert [e.key for e in parse_bibtex_entries(raw)] == ["key1", "key2"]


def test_duplicate_keys_first_wins() -> None:
    entries = parse_bibtex_entries("@article{dup, title = {First}}\n@article{dup, title = {Second}}")
    assert len(entries) == 1
    assert entries[0].title == "First"


def test_unbalanced_entry_skipped() -> None:
    assert parse_bibtex_entries("@article{incomplete, title = {Missing closing brace") == []


def test_keyless_records_do_not_swallow_next_entry() -> None:
    for prelude in ('@string{jcp = "J. Chem. Phys."}', "@comment{generated by tool}", '@preamble{"\\newcommand"}'):
        raw = f"{prelude}\n@article{{k1, title = {{T1}}, year = {{2020}}}}"
        entries = parse_bibtex_entries(raw)
        assert [e.key for e in entries] == ["k1"]
        assert entries[0].title == "T1"


def test_key_comma_must_be_top_level() -> None:
    raw = '@misc{note = {a, b}}\n@misc{"x, y"}\n@book{k2, title = {T2}}'
    assert [e.key for e in parse_bibtex_entries(raw)] == ["k2"]


def test_parenthesised_entry() -> None:
    entries = parse_bibtex_entries("@inproceedings(p1, title = {Parens (and more)}, year = {1999})")
    assert entries[0].key == "p1"
    assert entries[0].raw_bibtex.endswith(")")
    assert entries[0].title == "Parens (and more)"


def test_quoted_closer_does_not_end_entry() -> None:
    raw = '@article{q, note = "stray } brace", title = {Kept}}'
    spans = list(iter_bibtex_spans(raw))
    assert len(spans) == 1
    assert spans[0].raw_bibtex == raw


def test_entry_cap() -> None:
    raw = "\n".join(f"@misc{{k{i}, title = {{T{i}}}}}" for i in range(600))
    assert len(parse_bibtex_entries(raw)) == 500


def test_email_at_sign_is_not_an_entry() -> None:
    assert parse_bibtex_entries("contact me@example.org\n@misc{m, title={T}}")[0].key == "m"


# ---------------------------------------------------------------------------
# Source splitting
# ---------------------------------------------------------------------------

def test_split_source_keeps_annotations() -> None:
    raw = "% my refs\r\n@article{a, title={A}}\n\n  note between  \n@book{b, title={B}}\n"
    assert split_bibtex_source_blocks(raw) == [
        "% my refs",
        "@article{a, title={A}}",
        "note between",
        "@book{b, title={B}}",
    ]


def test_split_source_without_entries() -> None:
    assert split_bibtex_source_blocks("  just notes \n") == ["just notes"]
    assert split_bibtex_source_blocks("   ") == []


def test_split_source_keeps_keyless_records_as_text() -> None:
    raw = "@comment{generated by tool}\n@article{k1, title={T}}"
    assert split_bibtex_source_blocks(raw) == ["@comment{generated by tool}", "@article{k1, title={T}}"]


# ---------------------------------------------------------------------------
# Stored payloads
# ---------------------------------------------------------------------------

def test_normalize_bibliography_parse_or_drop() -> None:
    raw = [
        {"key": "a", "rawBibtex": "@misc{a, title={Alpha}}"},
        {"key": "a", "rawBibtex": "@misc{a, title={Again}}"},
        {"key": " ", "rawBibtex": "@misc{x, title={X}}"},
        {"key": "b"},
        "junk",
        {"key": "c", "raw_bibtex": "@misc{c, year={2001}}"},
    ]
    entries = normalize_bibliography(raw)
    assert [e.key for e in entries] == ["a", "c"]
    assert entries[0].title == "Alpha"
    assert entries[1].year == "2001"
    assert normalize_bibliography("nope") == []


def test_bibliography_round_trip_keeps_key_and_raw_text() -> None:
    entries = parse_bibtex_entries("@article{k1, title={T}, author={A}, year={2020}}")
    payload = serialize_bibliography(entries)
    assert payload == '[{"key": "k1", "rawBibtex": "@article{k1, title={T}, author={A}, year={2020}}"}]'
    assert deserialize_bibliography(payload) == entries


def test_compact_bibliography_drops_derived_fields() -> None:
    entry = BibliographyEntry(key=" k ", raw_bibtex=" @misc{k, title={T}} ", title="T")
    assert compact_bibliography([entry, entry]) == [BibliographyEntry(key="k", raw_bibtex="@misc{k, title={T}}")]


def test_deserialize_bibliography_invalid() -> None:
    assert deserialize_bibliography("{not json") == []


# ---------------------------------------------------------------------------
# Beautifier
# ---------------------------------------------------------------------------

def test_beautify_aligns_field_names() -> None:
    formatted = format_bibtex_source("@article{key1,title={Title},   author={A},year=2020}")
    assert formatted == "@article{key1,\n  title  = {Title},\n  author = {A},\n  year   = 2020\n}"


def test_beautify_preserves_text_between_entries() -> None:
    raw = "Comment\n@article{k1, title={T1}}\n\nMore Comment\n@article{k2, title={T2}}"
    formatted = format_bibtex_source(raw)
    assert formatted == (
        "Comment\n\n"
        "@article{k1,\n  title = {T1}\n}\n\n"
        "More Comment\n\n"
        "@article{k2,\n  title = {T2}\n}"
    )


def test_beautify_folds_multiline_values_and_keeps_braced_commas() -> None:
    formatted = format_bibtex_source("@book{b,\n author = {Doe, J. and Roe, R.},\n title = {One\n   Two},\n}")
    assert "  author = {Doe, J. and Roe, R.}," in formatted
    assert "  title  = {One Two}" in formatted


def test_beautify_passes_unparsable_header_through() -> None:
    assert format_bibtex_source("@misc{ , title={T}}") == "@misc{ , title={T}}"


def test_beautify_without_entries() -> None:
    assert format_bibtex_source("  plain text  ") == "plain text"


def test_split_fields_respects_quotes() -> None:
    assert split_bibtex_fields('a = "x, y", b = {p, q}') == ['a = "x, y"', "b = {p, q}"]
