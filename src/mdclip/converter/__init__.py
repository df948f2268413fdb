"""Converter package for turning web pages into Markdown.

This package provides a pipeline that normalizes a page tree, extracts the
main article and renders it as Markdown.
"""

from mdclip.converter.extractor import ReadabilityExtractor
from mdclip.converter.fetcher import ResourceFetcher
from mdclip.converter.normalizer import TreeNormalizer
from mdclip.converter.pipeline import Converter
from mdclip.converter.protocols import ContentExtractor, ResourceSource
from mdclip.converter.renderer import MarkdownRenderer, render, render_table
from mdclip.converter.tables import TableFormatter

__all__ = [
    "ContentExtractor",
    "Converter",
    "MarkdownRenderer",
    "ReadabilityExtractor",
    "ResourceFetcher",
    "ResourceSource",
    "TableFormatter",
    "TreeNormalizer",
    "render",
    "render_table",
]
