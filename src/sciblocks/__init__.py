"""Research-article block model, Markdown/TeX parsers and citation engine."""

__version__ = "0.1.0"
