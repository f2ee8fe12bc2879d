"""Markdown to Confluence storage format conversion.

This module provides the MarkdownConverter, which renders Markdown with
Pandoc and post-processes the HTML into Confluence storage format.
"""

from .markdown_converter import MarkdownConverter

__all__ = ['MarkdownConverter']
