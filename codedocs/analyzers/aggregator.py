"""Repository-wide aggregation of per-file facts."""

from __future__ import annotations

from typing import Dict, Iterable

from .extractor import StructuralExtractor
from ..models import AnalysisResult, FileFacts, FileRecord


class AnalysisAggregator:
    """Concatenates per-file facts in the order files are added.

    No deduplication or merging happens; two files defining ``main`` both
    contribute a ``main`` function.
    """

    def __init__(self) -> None:
        self.result = AnalysisResult()
        self.files_seen = 0

    def add(self, facts: FileFacts) -> Dict[str, int]:
        """Append ``facts`` and return the running totals."""
        self.result.functions.extend(facts.functions)
        self.result.classes.extend(facts.classes)
        self.result.endpoints.extend(facts.endpoints)
        self.result.imports.extend(facts.imports)
        self.files_seen += 1
        return self.result.counts()


def aggregate(files: Iterable[FileRecord], extractor: StructuralExtractor) -> AnalysisResult:
    """Extract every file sequentially and return the combined result."""
    aggregator = AnalysisAggregator()
    for record in files:
        aggregator.add(extractor.extract(record.content, record.path, record.language))
    return aggregator.result


__all__ = ["AnalysisAggregator", "aggregate"]
