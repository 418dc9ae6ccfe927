"""Input validation for submitted repository URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

_GITHUB_REPO_URL = re.compile(r"^https?://(www\.)?github\.com/[\w-]+/[\w.-]+/?$")


@dataclass(frozen=True)
class ValidationOutcome:
    is_valid: bool
    error: Optional[str] = None


def validate_github_url(url: Any) -> ValidationOutcome:
    """Accept only ``http(s)://[www.]github.com/<owner>/<repo>[/]``."""
    if not url or not isinstance(url, str):
        return ValidationOutcome(False, "URL is required")
    if not _GITHUB_REPO_URL.fullmatch(url):
        return ValidationOutcome(
            False,
            "Please enter a valid GitHub repository URL "
            "(e.g., https://github.com/username/repo)",
        )
    return ValidationOutcome(True)


__all__ = ["ValidationOutcome", "validate_github_url"]
