"""Shared constants for README prompting and fallbacks."""

from __future__ import annotations

DOCUMENT_OUTLINE: tuple[tuple[str, str], ...] = (
    ("Overview", "2-3 sentences"),
    ("Features", "3-5 bullet points"),
    ("Installation", "Show setup commands"),
    ("Usage", "How to run/use it"),
    ("Project Structure", "Brief overview"),
)

EXISTING_README_LIMIT = 1200
OVERVIEW_README_LIMIT = 1000
MANIFEST_EXCERPT_LIMIT = 400
INSTALL_MANIFEST_EXCERPT_LIMIT = 500
ENTRYPOINT_EXCERPT_LIMIT = 300
SUMMARY_CODE_LIMIT = 1500
MAX_LISTED_FILES = 10
MAX_MANIFEST_FILES = 2
MAX_INSTALL_MANIFEST_FILES = 3
MAX_ENTRYPOINT_FILES = 3


__all__ = [
    "DOCUMENT_OUTLINE",
    "ENTRYPOINT_EXCERPT_LIMIT",
    "EXISTING_README_LIMIT",
    "INSTALL_MANIFEST_EXCERPT_LIMIT",
    "MANIFEST_EXCERPT_LIMIT",
    "MAX_ENTRYPOINT_FILES",
    "MAX_INSTALL_MANIFEST_FILES",
    "MAX_LISTED_FILES",
    "MAX_MANIFEST_FILES",
    "OVERVIEW_README_LIMIT",
    "SUMMARY_CODE_LIMIT",
]
