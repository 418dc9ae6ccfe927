"""Shared constants for fetching, analysis, and job progress."""

from __future__ import annotations

SUPPORTED_EXTENSIONS: tuple[str, ...] = (
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".py",
    ".java",
    ".go",
    ".rs",
    ".rb",
)

EXCLUDE_PATTERNS: tuple[str, ...] = (
    "node_modules",
    "dist",
    "build",
    ".git",
    "coverage",
    "__pycache__",
    ".next",
    ".vercel",
)

MAX_FILES = 500
MAX_FILE_SIZE = 1_048_576

EXCERPT_LINE_WINDOW = 20

MANIFEST_FILENAMES: tuple[str, ...] = (
    "package.json",
    "requirements.txt",
    "setup.py",
    "pyproject.toml",
)

INSTALL_MANIFEST_FILENAMES: tuple[str, ...] = MANIFEST_FILENAMES + (
    "Cargo.toml",
    "go.mod",
    "pom.xml",
    "build.gradle",
    "Gemfile",
    "composer.json",
)

PROGRESS_STAGES: dict[str, tuple[str, int]] = {
    "cloning": ("Cloning Repository", 10),
    "fetching": ("Fetching Files", 25),
    "analyzing": ("Analyzing Code Structure", 50),
    "generating": ("Generating README", 70),
    "formatting": ("Formatting Markdown", 95),
    "completed": ("Completed", 100),
}


__all__ = [
    "EXCERPT_LINE_WINDOW",
    "EXCLUDE_PATTERNS",
    "INSTALL_MANIFEST_FILENAMES",
    "MANIFEST_FILENAMES",
    "MAX_FILES",
    "MAX_FILE_SIZE",
    "PROGRESS_STAGES",
    "SUPPORTED_EXTENSIONS",
]
