"""Extension-based language detection."""

from __future__ import annotations

from typing import Optional

from ..models import Language

_LANGUAGE_BY_EXTENSION = {
    "js": Language.JAVASCRIPT,
    "jsx": Language.JAVASCRIPT,
    "mjs": Language.JAVASCRIPT,
    "cjs": Language.JAVASCRIPT,
    "ts": Language.TYPESCRIPT,
    "tsx": Language.TYPESCRIPT,
    "mts": Language.TYPESCRIPT,
    "cts": Language.TYPESCRIPT,
    "py": Language.PYTHON,
    "java": Language.JAVA,
    "go": Language.GO,
    "rs": Language.RUST,
    "rb": Language.RUBY,
}

JAVASCRIPT_FAMILY = "javascript"
PYTHON_FAMILY = "python"

_FAMILY_BY_LANGUAGE = {
    Language.JAVASCRIPT: JAVASCRIPT_FAMILY,
    Language.TYPESCRIPT: JAVASCRIPT_FAMILY,
    Language.PYTHON: PYTHON_FAMILY,
}


def detect_language(path: str) -> Language:
    """Map ``path`` to a language tag using its final extension segment."""
    filename = path.rsplit("/", 1)[-1]
    if "." not in filename:
        return Language.UNKNOWN
    extension = filename.rsplit(".", 1)[-1].lower()
    return _LANGUAGE_BY_EXTENSION.get(extension, Language.UNKNOWN)


def language_family(language: Language) -> Optional[str]:
    """Return the extraction family for ``language``, or None when none applies."""
    return _FAMILY_BY_LANGUAGE.get(language)


__all__ = [
    "JAVASCRIPT_FAMILY",
    "PYTHON_FAMILY",
    "detect_language",
    "language_family",
]
