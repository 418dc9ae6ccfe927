"""Line-pattern extraction for Python sources.

This is a bounded-effort approximation, not a parser. Only column-zero
definitions are recognised, signatures must fit on one line, and a function
excerpt ends after ``EXCERPT_LINE_WINDOW`` lines or at the next non-blank
line that starts at column zero. Methods, nested functions and multi-line
signatures are therefore missed or mis-bounded.
"""

from __future__ import annotations

import re
from typing import List, Optional

from .base import Extractor
from ..constants import EXCERPT_LINE_WINDOW
from ..models import ClassFact, FileFacts, FunctionFact, Parameter

_DEF_PATTERN = re.compile(r"^(async\s+)?def\s+(\w+)\s*\((.*?)\)\s*(?:->\s*[^:]+)?:")
_CLASS_PATTERN = re.compile(r"^class\s+(\w+)(?:\(.*?\))?\s*:")
_FROM_IMPORT_PATTERN = re.compile(r"^from\s+([\w.]+)\s+import\s+(.+)")
_IMPORT_PATTERN = re.compile(r"^import\s+(.+)")
_DOCSTRING_QUOTES = ('"""', "'''")


class PythonPatternExtractor(Extractor):
    """Approximates functions, classes and imports with anchored regexes."""

    def __init__(self, excerpt_lines: int = EXCERPT_LINE_WINDOW) -> None:
        self.excerpt_lines = excerpt_lines

    def extract(self, content: str, path: str) -> FileFacts:
        facts = FileFacts()
        lines = content.split("\n")

        for index, line in enumerate(lines):
            def_match = _DEF_PATTERN.match(line)
            if def_match:
                facts.functions.append(self._function_fact(def_match, lines, index, path))
                continue

            class_match = _CLASS_PATTERN.match(line)
            if class_match:
                facts.classes.append(
                    ClassFact(name=class_match.group(1), line_start=index + 1, file=path)
                )
                continue

            facts.imports.extend(self._imports(line))

        return facts

    def _function_fact(
        self, match: re.Match[str], lines: List[str], index: int, path: str
    ) -> FunctionFact:
        params = tuple(
            Parameter(part.strip()) for part in match.group(3).split(",") if part.strip()
        )
        return FunctionFact(
            name=match.group(2),
            parameters=params,
            is_async=match.group(1) is not None,
            line_start=index + 1,
            source_excerpt="\n".join(self._body(lines, index)),
            docstring=self._docstring(lines, index + 1),
            file=path,
        )

    def _body(self, lines: List[str], index: int) -> List[str]:
        body: List[str] = []
        limit = min(index + self.excerpt_lines, len(lines))
        cursor = index
        while cursor < limit:
            body.append(lines[cursor])
            cursor += 1
            if cursor < len(lines) and _starts_new_block(lines[cursor]):
                break
        return body

    @staticmethod
    def _docstring(lines: List[str], index: int) -> Optional[str]:
        if index >= len(lines):
            return None
        first = lines[index].strip()
        quote = next((q for q in _DOCSTRING_QUOTES if first.startswith(q)), None)
        if quote is None:
            return None

        remainder = first[len(quote) :]
        if quote in remainder:
            text = remainder[: remainder.index(quote)]
            return text.strip() or None

        parts = [remainder]
        for line in lines[index + 1 :]:
            if quote in line:
                parts.append(line[: line.index(quote)].strip())
                break
            parts.append(line.strip())
        text = "\n".join(parts).strip()
        return text or None

    @staticmethod
    def _imports(line: str) -> List[str]:
        from_match = _FROM_IMPORT_PATTERN.match(line)
        if from_match:
            return [from_match.group(1)]
        import_match = _IMPORT_PATTERN.match(line)
        if not import_match:
            return []
        modules: List[str] = []
        for part in import_match.group(1).split(","):
            name = part.split(" as ", 1)[0].strip()
            if name:
                modules.append(name)
        return modules


def _starts_new_block(line: str) -> bool:
    return bool(line.strip()) and not line.startswith((" ", "\t"))


__all__ = ["PythonPatternExtractor"]
