"""Assemble complete Markdown or TeX documents for download."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from jinja2 import Environment, FileSystemLoader

from sciblocks.citations.bibtex import BibliographyEntry
from sciblocks.citations.formatter import format_bibliography_ieee, format_reference_ieee
from sciblocks.citations.keys import BRACKET_CITATION_RE, LATEX_CITATION_RE, extract_citation_keys_from_text
from sciblocks.editor.logic import format_heading
from sciblocks.parser import parser_for
from sciblocks.parser.base import ArticleBlock, SourceFormat, normalize_newlines

logger = logging.getLogger(__name__)

ExportTarget = Literal["md", "tex"]

_FIGURE_LINE_RE = re.compile(r"^!\[([^\]]*)\]\(([^)\s]+)\)(?:\{([^}]*)\})?$")
_FIGURE_WIDTH_RE = re.compile(r"^(0(\.\d+)?|1(\.0+)?)$")
_INLINE_DOLLAR_RE = re.compile(r"(?<![\\$])\$(?!\$)(.+?)(?<![\\$])\$(?!\$)")

_TEX_EQUATION_RE = re.compile(r"\\begin\{equation\*?\}(.*?)\\end\{equation\*?\}", re.DOTALL)
_TEX_DISPLAY_RE = re.compile(r"\\\[(.*?)\\\]", re.DOTALL)
_TEX_INLINE_RE = re.compile(r"\\\((.*?)\\\)", re.DOTALL)
_TEX_FIGURE_RE = re.compile(r"\\begin\{figure\*?\}(?:\[[^\]]*\])?(.*?)\\end\{figure\*?\}", re.DOTALL)
_TEX_GRAPHICS_RE = re.compile(r"\\includegraphics(?:\[([^\]]*)\])?\{([^{}]+)\}")
_TEX_CAPTION_RE = re.compile(r"\\caption\{([^{}]*)\}")
_TEX_LABEL_RE = re.compile(r"\\label\{([^{}]*)\}")
_TEX_WIDTH_RE = re.compile(r"width\s*=\s*([0-9.]+)\\(?:line|text)width")


@dataclass(slots=True)
class ExportResult:
    content: str
    warnings: list[str] = field(default_factory=list)
    bib_source: str | None = None


# ---------------------------------------------------------------------------
# Markdown -> TeX content
# ---------------------------------------------------------------------------

def _parse_figure_attrs(attrs: str) -> tuple[str | None, str | None]:
    label = width = None
    for part in attrs.split():
        if part.startswith("#"):
            label = part[1:]
        elif part.startswith("width="):
            width = part[len("width="):]
    return label, width


def _figure_to_tex(caption: str, src: str, attrs: str) -> list[str]:
    label, width = _parse_figure_attrs(attrs)
    if not width or not _FIGURE_WIDTH_RE.match(width):
        width = "0.8"
    out = [
        "\\begin{figure}[htbp]",
        "  \\centering",
        f"  \\includegraphics[width={width}\\linewidth]{{{src}}}",
    ]
    if caption:
        out.append(f"  \\caption{{{caption}}}")
    if label:
        out.append(f"  \\label{{{label}}}")
    out.append("\\end{figure}")
    return out


def _inline_markdown_to_tex(line: str) -> str:
    line = BRACKET_CITATION_RE.sub(r"\\cite{\1}", line)
    return _INLINE_DOLLAR_RE.sub(r"\\(\1\\)", line)


def markdown_content_to_tex(text: str) -> str:
    """Convert block content written in Markdown conventions to TeX."""
    lines = normalize_newlines(text).split("\n")
    out: list[str] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        trimmed = line.strip()

        figure = _FIGURE_LINE_RE.match(trimmed)
        if figure:
            out.extend(_figure_to_tex(figure.group(1).strip(), figure.group(2).strip(), figure.group(3) or ""))
            i += 1
            continue

        if trimmed.startswith("$$"):
            body: list[str] = []
            if trimmed.endswith("$$") and len(trimmed) > 4:
                body.append(trimmed[2:-2].strip())
            else:
                opening = trimmed[2:].strip()
                if opening:
                    body.append(opening)
                while i + 1 < len(lines):
                    i += 1
                    end = lines[i].find("$$")
                    if end >= 0:
                        tail = lines[i][:end].strip()
                        if tail:
                            body.append(tail)
                        break
                    body.append(lines[i])
            out.extend(["\\begin{equation}", "\n".join(body), "\\end{equation}"])
            i += 1
            continue

        out.append(_inline_markdown_to_tex(line))
        i += 1

    return "\n".join(out)


# ---------------------------------------------------------------------------
# TeX -> Markdown content
# ---------------------------------------------------------------------------

def _cite_to_markdown(match: re.Match[str]) -> str:
    keys = [key.strip() for key in match.group(1).split(",") if key.strip()]
    return " ".join(f"[@{key}]" for key in keys)


def _display_to_markdown(match: re.Match[str]) -> str:
    return f"$$\n{match.group(1).strip()}\n$$"


def _figure_to_markdown(match: re.Match[str]) -> str:
    body = match.group(1)
    graphics = _TEX_GRAPHICS_RE.search(body)
    if not graphics:
        return match.group(0)
    caption = _TEX_CAPTION_RE.search(body)
    label = _TEX_LABEL_RE.search(body)
    width = _TEX_WIDTH_RE.search(graphics.group(1) or "")

    attrs = []
    if label:
        attrs.append(f"#{label.group(1)}")
    if width:
        attrs.append(f"width={width.group(1)}")
    suffix = f"{{{' '.join(attrs)}}}" if attrs else ""
    return f"![{caption.group(1) if caption else ''}]({graphics.group(2)}){suffix}"


def tex_content_to_markdown(text: str) -> str:
    """Convert block content written in TeX conventions to Markdown."""
    text = LATEX_CITATION_RE.sub(_cite_to_markdown, text)
    text = _TEX_FIGURE_RE.sub(_figure_to_markdown, text)
    text = _TEX_EQUATION_RE.sub(_display_to_markdown, text)
    text = _TEX_DISPLAY_RE.sub(_display_to_markdown, text)
    return _TEX_INLINE_RE.sub(lambda m: f"${m.group(1).strip()}$", text)


# ---------------------------------------------------------------------------
# Document assembly
# ---------------------------------------------------------------------------

class DocumentExporter:
    """Render block lists into full Markdown or TeX documents."""

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).resolve().parent.parent / "template"

        loader = FileSystemLoader(str(template_dir))
        self._env = Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)

    def _body(self, blocks: Iterable[ArticleBlock], target: SourceFormat) -> str:
        convert = markdown_content_to_tex if target == "tex" else tex_content_to_markdown
        parts = []
        for block in blocks:
            heading = format_heading(block.level, block.heading, target)
            content = block.content.strip()
            parts.append(f"{heading}\n\n{convert(content)}" if content else heading)
        return "\n\n".join(parts).strip()

    def build_markdown(self, blocks: Iterable[ArticleBlock], bibliography: Sequence[BibliographyEntry]) -> str:
        template = self._env.get_template("article.md.j2")
        rendered = template.render(
            body=self._body(blocks, "markdown"),
            references=format_bibliography_ieee(bibliography),
        )
        return rendered.strip()

    def build_tex(self, blocks: Iterable[ArticleBlock], bibliography: Sequence[BibliographyEntry]) -> str:
        template = self._env.get_template("article.tex.j2")
        references = [{"key": entry.key, "text": format_reference_ieee(entry)} for entry in bibliography]
        rendered = template.render(body=self._body(blocks, "tex"), references=references)
        return rendered.strip()

    def export(
        self,
        source_text: str,
        source_format: SourceFormat,
        target: ExportTarget,
        bibliography: Sequence[BibliographyEntry],
        all_project_bib_entries: Sequence[BibliographyEntry] | None = None,
    ) -> ExportResult:
        blocks = parser_for(source_format).parse(source_text)

        if target == "tex":
            content = self.build_tex(blocks, bibliography)
        else:
            content = self.build_markdown(blocks, bibliography)

        available = {entry.key for entry in bibliography}
        missing = [key for key in extract_citation_keys_from_text(source_text) if key not in available]
        warnings = [f"No bibliography entry for citation key '{key}'" for key in missing]
        for warning in warnings:
            logger.debug(warning)

        bib_source = None
        if all_project_bib_entries:
            bib_source = "\n\n".join(entry.raw_bibtex for entry in all_project_bib_entries)

        return ExportResult(content=content, warnings=warnings, bib_source=bib_source)


def export_source(
    source_text: str,
    source_format: SourceFormat,
    target: ExportTarget,
    bibliography: Sequence[BibliographyEntry],
    all_project_bib_entries: Sequence[BibliographyEntry] | None = None,
) -> ExportResult:
    return DocumentExporter().export(source_text, source_format, target, bibliography, all_project_bib_entries)
