"""Language-dispatched structural extraction with per-file failure isolation."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from .base import Extractor
from .language import JAVASCRIPT_FAMILY, PYTHON_FAMILY, language_family
from .python_patterns import PythonPatternExtractor
from .tree_sitter import TreeSitterExtractor
from ..logging import get_logger
from ..models import FileFacts, Language


def default_variants() -> Dict[str, Extractor]:
    """Return the built-in extraction strategy for each language family."""
    return {
        JAVASCRIPT_FAMILY: TreeSitterExtractor(),
        PYTHON_FAMILY: PythonPatternExtractor(),
    }


class StructuralExtractor:
    """Selects an extraction strategy by language and never raises to its caller.

    Languages without a strategy (Java, Go, Rust, Ruby, Unknown) yield an empty
    record. A strategy that fails on a file is logged and the file contributes
    no facts, so one malformed file cannot abort repository-wide analysis.
    """

    def __init__(self, variants: Optional[Mapping[str, Extractor]] = None) -> None:
        self._variants: Dict[str, Extractor] = dict(
            variants if variants is not None else default_variants()
        )
        self.logger = get_logger("analyzers.extractor")

    def supports(self, language: Language) -> bool:
        family = language_family(language)
        return family is not None and family in self._variants

    def extract(self, content: str, path: str, language: Language) -> FileFacts:
        family = language_family(language)
        strategy = self._variants.get(family) if family else None
        if strategy is None:
            return FileFacts.empty()
        try:
            return strategy.extract(content, path)
        except Exception as exc:
            self.logger.warning("Failed to analyze %s: %s", path, exc)
            return FileFacts.empty()


__all__ = ["StructuralExtractor", "default_variants"]
