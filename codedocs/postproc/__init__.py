"""Post-processing for generated documents."""

from .formatter import MarkdownFormatter

__all__ = ["MarkdownFormatter"]
