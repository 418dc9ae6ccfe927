"""Formatting pass applied to generated README markdown."""

from __future__ import annotations

import re
from typing import List

_WRAPPING_FENCE = re.compile(
    r"\A```(?:markdown|md)[ \t]*\n(.*)\n```[ \t]*\Z", re.DOTALL | re.IGNORECASE
)


class MarkdownFormatter:
    """Normalises whitespace, headings and code fences in generated markdown."""

    def format(self, markdown: str) -> str:
        normalized = markdown.replace("\r\n", "\n").replace("\r", "\n").strip()
        normalized = self.unwrap_document_fence(normalized)
        lines = normalized.split("\n")
        cleaned: List[str] = []
        in_code = False
        previous_blank = False

        for line in lines:
            stripped = line.rstrip()
            if stripped.lstrip().startswith("```"):
                if not in_code and cleaned and cleaned[-1] != "":
                    cleaned.append("")
                in_code = not in_code
                cleaned.append(stripped)
                previous_blank = False
                continue

            if not in_code:
                if stripped.startswith("#") and cleaned and cleaned[-1] != "":
                    cleaned.append("")
                if not stripped:
                    if previous_blank:
                        continue
                    previous_blank = True
                    cleaned.append("")
                    continue

            cleaned.append(stripped)
            previous_blank = False

        while cleaned and cleaned[-1] == "":
            cleaned.pop()

        return "\n".join(cleaned) + "\n"

    @staticmethod
    def unwrap_document_fence(markdown: str) -> str:
        """Strip a single fence wrapping the whole document, e.g. ```` ```markdown ... ``` ````."""
        match = _WRAPPING_FENCE.match(markdown)
        if match is None:
            return markdown
        return match.group(1).strip()


__all__ = ["MarkdownFormatter"]
