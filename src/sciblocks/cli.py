"""sciblocks CLI entrypoint."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from sciblocks.citations.beautify import format_bibtex_source
from sciblocks.citations.bibtex import BibliographyEntry, deserialize_bibliography, parse_bibtex_entries
from sciblocks.citations.formatter import format_bibliography_ieee, format_citation_chip
from sciblocks.citations.resolver import merge_bibliography_sources, resolve_document_bibliography
from sciblocks.editor.logic import infer_source_format
from sciblocks.parser import parser_for
from sciblocks.parser.serialize import serialize_blocks
from sciblocks.renderer.document import DocumentExporter

_SOURCE_FORMATS = click.Choice(["markdown", "tex"], case_sensitive=False)
_EXISTING_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr")
def main(verbose: bool) -> None:
    """Parse, cite and export research articles written in Markdown or TeX."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("export")
@click.argument("input_path", type=_EXISTING_FILE)
@click.option("--output", "-o", type=click.Path(path_type=Path), required=True, help="Output document path")
@click.option(
    "--to",
    "target",
    type=click.Choice(["md", "tex"], case_sensitive=False),
    default=None,
    help="Target format (defaults to the output file extension)",
)
@click.option("--from", "source_format", type=_SOURCE_FORMATS, default=None, help="Source format override")
@click.option("--bib", "bib_paths", type=_EXISTING_FILE, multiple=True, help="Project .bib file (repeatable)")
@click.option(
    "--bibliography-json",
    type=_EXISTING_FILE,
    default=None,
    help="Previously stored bibliography payload, consulted after the .bib files",
)
def export_command(
    input_path: Path,
    output: Path,
    target: str | None,
    source_format: str | None,
    bib_paths: tuple[Path, ...],
    bibliography_json: Path | None,
) -> None:
    """Export INPUT_PATH as a complete Markdown or TeX document."""
    fmt = infer_source_format(input_path.name, source_format.lower() if source_format else None)
    target = (target or _target_from_suffix(output)).lower()
    text = input_path.read_text(encoding="utf-8", errors="ignore")

    project_entries = _load_bib_files(bib_paths)
    persisted = _load_bibliography_json(bibliography_json)
    resolved = resolve_document_bibliography(text, project_entries, persisted)

    result = DocumentExporter().export(text, fmt, target, resolved.entries, project_entries)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.content, encoding="utf-8")
    if result.bib_source:
        bib_out = output.with_name("references.bib")
        bib_out.write_text(result.bib_source, encoding="utf-8")

    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    click.echo(f"Exported: {output}")


@main.command("format-bib")
@click.argument("input_path", type=_EXISTING_FILE)
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None, help="Write here instead of stdout")
def format_bib_command(input_path: Path, output: Path | None) -> None:
    """Beautify a BibTeX file, keeping comments between entries."""
    formatted = format_bibtex_source(input_path.read_text(encoding="utf-8", errors="ignore"))
    if output is None:
        click.echo(formatted)
        return
    output.write_text(formatted + "\n", encoding="utf-8")
    click.echo(f"Formatted: {output}")


@main.command("cite")
@click.argument("input_path", type=_EXISTING_FILE)
@click.option("--bib", "bib_paths", type=_EXISTING_FILE, multiple=True, help="Project .bib file (repeatable)")
@click.option("--bibliography-json", type=_EXISTING_FILE, default=None, help="Stored bibliography payload")
@click.option(
    "--style",
    type=click.Choice(["ieee", "chip"], case_sensitive=False),
    default="ieee",
    show_default=True,
    help="Reference list style",
)
def cite_command(
    input_path: Path,
    bib_paths: tuple[Path, ...],
    bibliography_json: Path | None,
    style: str,
) -> None:
    """Print the numbered bibliography cited by INPUT_PATH."""
    text = input_path.read_text(encoding="utf-8", errors="ignore")
    resolved = resolve_document_bibliography(
        text,
        _load_bib_files(bib_paths),
        _load_bibliography_json(bibliography_json),
    )

    if style.lower() == "chip":
        for number, entry in enumerate(resolved.entries, start=1):
            click.echo(f"[{number}] {entry.key}: {format_citation_chip(entry)}")
    else:
        for line in format_bibliography_ieee(resolved.entries):
            click.echo(line)

    for key in resolved.missing_keys:
        click.echo(f"Missing citation: {key}", err=True)


@main.command("blocks")
@click.argument("input_path", type=_EXISTING_FILE)
@click.option("--from", "source_format", type=_SOURCE_FORMATS, default=None, help="Source format override")
def blocks_command(input_path: Path, source_format: str | None) -> None:
    """Print the block serialization of INPUT_PATH as JSON."""
    fmt = infer_source_format(input_path.name, source_format.lower() if source_format else None)
    blocks = parser_for(fmt).parse(input_path.read_text(encoding="utf-8", errors="ignore"))
    click.echo(serialize_blocks(blocks))


def _target_from_suffix(output: Path) -> str:
    suffix = output.suffix.lower()
    if suffix == ".tex":
        return "tex"
    if suffix in (".md", ".markdown"):
        return "md"
    raise click.ClickException(
        f"Cannot infer export format from {output.name} (use --to md|tex or a .md/.tex output path)"
    )


def _load_bib_files(paths: tuple[Path, ...]) -> list[BibliographyEntry]:
    return merge_bibliography_sources(
        *(parse_bibtex_entries(path.read_text(encoding="utf-8", errors="ignore")) for path in paths)
    )


def _load_bibliography_json(path: Path | None) -> list[BibliographyEntry]:
    if path is None:
        return []
    raw = path.read_text(encoding="utf-8", errors="ignore")
    entries = deserialize_bibliography(raw)
    if not entries and raw.strip():
        try:
            json.loads(raw)
        except ValueError as exc:
            raise click.ClickException(f"Invalid bibliography JSON in {path.name}: {exc}") from exc
    return entries


if __name__ == "__main__":  # pragma: no cover
    main()
