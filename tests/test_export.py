"""Tests for document export in both target formats."""

from __future__ import annotations

from sciblocks.citations.bibtex import BibliographyEntry
from sciblocks.parser import ArticleBlock
from sciblocks.renderer.document import (
    DocumentExporter,
    export_source,
    markdown_content_to_tex,
    tex_content_to_markdown,
)

BIB = [BibliographyEntry(key="k1", raw_bibtex="@misc{k1, title={T}}", author="A", title="T", year="2020")]


# ---------------------------------------------------------------------------
# Content conversion
# ---------------------------------------------------------------------------

def test_bracket_citations_become_cite() -> None:
    assert markdown_content_to_tex("As seen in [@key1] and [@key2].") == "As seen in \\cite{key1} and \\cite{key2}."


def test_markdown_image_becomes_figure() -> None:
    output = markdown_content_to_tex("![Figure Caption](image.png){#fig:1 width=0.5}")
    assert output.split("\n") == [
        "\\begin{figure}[htbp]",
        "  \\centering",
        "  \\includegraphics[width=0.5\\linewidth]{image.png}",
        "  \\caption{Figure Caption}",
        "  \\label{fig:1}",
        "\\end{figure}",
    ]


def test_figure_width_out_of_range_defaults() -> None:
    assert "width=0.8\\linewidth" in markdown_content_to_tex("![](a.png){width=3}")


def test_display_math_becomes_equation() -> None:
    assert markdown_content_to_tex("$$\nE = mc^2\n$$") == "\\begin{equation}\nE = mc^2\n\\end{equation}"
    assert markdown_content_to_tex("$$a+b$$") == "\\begin{equation}\na+b\n\\end{equation}"


def test_inline_math_becomes_paren_delimiters() -> None:
    assert markdown_content_to_tex("Let $x$ be \\$5.") == "Let \\(x\\) be \\$5."


def test_tex_content_to_markdown() -> None:
    text = "See \\cite{a, b}.\n\\begin{equation}\nx = 1\n\\end{equation}\nand \\(y\\) or \\[z\\]"
    assert tex_content_to_markdown(text) == "See [@a] [@b].\n$$\nx = 1\n$$\nand $y$ or $$\nz\n$$"


def test_tex_figure_to_markdown_image() -> None:
    text = (
        "\\begin{figure}[htbp]\n  \\centering\n  \\includegraphics[width=0.5\\linewidth]{img.png}\n"
        "  \\caption{Cap}\n  \\label{fig:a}\n\\end{figure}"
    )
    assert tex_content_to_markdown(text) == "![Cap](img.png){#fig:a width=0.5}"


# ---------------------------------------------------------------------------
# Whole documents
# ---------------------------------------------------------------------------

def test_build_tex_document() -> None:
    content = DocumentExporter().build_tex([ArticleBlock(level=1, heading="Intro", content="Text [@k1]")], BIB)
    assert content.startswith("\\documentclass{article}")
    assert "\\begin{document}" in content
    assert "\\section{Intro}\n\nText \\cite{k1}" in content
    assert "\\begin{thebibliography}{1}\n\\bibitem{k1} A, \"T\", 2020.\n\\end{thebibliography}" in content
    assert content.endswith("\\end{document}")


def test_build_tex_document_without_bibliography() -> None:
    content = DocumentExporter().build_tex([ArticleBlock(level=2, heading="Only", content="")], [])
    assert "thebibliography" not in content
    assert "\\subsection{Only}\n\n\\end{document}" in content


def test_build_markdown_document() -> None:
    content = DocumentExporter().build_markdown(
        [ArticleBlock(level=1, heading="Intro", content="Text \\cite{k1}")], BIB
    )
    assert content == (
        "---\nbibliography: references.bib\n---\n\n"
        "# Intro\n\nText [@k1]\n\n"
        "## References\n\n"
        '[1] A, "T", 2020.'
    )


def test_build_markdown_document_without_bibliography() -> None:
    content = DocumentExporter().build_markdown([ArticleBlock(level=4, heading="Deep", content="x")], [])
    assert content == "### Deep\n\nx"


def test_export_source_markdown_to_tex() -> None:
    source = "# Intro\nSee [@k1] and [@k9].\n\n$$\na=b\n$$"
    result = export_source(source, "markdown", "tex", BIB, all_project_bib_entries=BIB)
    assert "\\section{Intro}" in result.content
    assert "\\cite{k1}" in result.content
    assert "\\begin{equation}\na=b\n\\end{equation}" in result.content
    assert result.warnings == ["No bibliography entry for citation key 'k9'"]
    assert result.bib_source == "@misc{k1, title={T}}"


def test_export_source_tex_to_markdown() -> None:
    source = "\\section{Intro}\nSee \\cite{k1}.\n\\subsection{Math}\n\\[x\\]"
    result = export_source(source, "tex", "md", [])
    assert result.content == "# Intro\n\nSee [@k1].\n\n## Math\n\n$$\nx\n$$"
    assert result.warnings == ["No bibliography entry for citation key 'k1'"]
    assert result.bib_source is None
