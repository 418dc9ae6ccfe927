"""Structural extraction strategies and repository aggregation."""

from .aggregator import AnalysisAggregator, aggregate
from .base import Extractor
from .extractor import StructuralExtractor, default_variants
from .language import detect_language, language_family
from .python_patterns import PythonPatternExtractor
from .tree_sitter import TreeSitterExtractor

__all__ = [
    "AnalysisAggregator",
    "Extractor",
    "PythonPatternExtractor",
    "StructuralExtractor",
    "TreeSitterExtractor",
    "aggregate",
    "default_variants",
    "detect_language",
    "language_family",
]
