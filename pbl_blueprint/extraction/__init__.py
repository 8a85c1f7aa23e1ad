"""Free-text extraction: markdown cleaning, strategies, field decomposition."""

from .extractor import ContentExtractor, extract, join_items, render_items
from .text_cleaner import clean_markdown

__all__ = ["ContentExtractor", "extract", "join_items", "render_items", "clean_markdown"]
