"""Builds prompts for the generation service from repository facts."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from ..constants import INSTALL_MANIFEST_FILENAMES, MANIFEST_FILENAMES
from ..models import AnalysisResult, EndpointFact, FileRecord, FunctionFact, RepoInfo
from .constants import (
    DOCUMENT_OUTLINE,
    ENTRYPOINT_EXCERPT_LIMIT,
    EXISTING_README_LIMIT,
    INSTALL_MANIFEST_EXCERPT_LIMIT,
    MANIFEST_EXCERPT_LIMIT,
    MAX_ENTRYPOINT_FILES,
    MAX_INSTALL_MANIFEST_FILES,
    MAX_LISTED_FILES,
    MAX_MANIFEST_FILES,
    OVERVIEW_README_LIMIT,
    SUMMARY_CODE_LIMIT,
)

_ENTRYPOINT_PATTERN = re.compile(r"main\.|app\.|index\.|__main__\.py|server\.|cli\.", re.IGNORECASE)


def _filename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def select_manifest_files(
    files: Iterable[FileRecord],
    names: Sequence[str] = MANIFEST_FILENAMES,
    limit: int = MAX_MANIFEST_FILES,
) -> List[FileRecord]:
    """Return up to ``limit`` files whose basename is a known build manifest."""
    selected = [record for record in files if _filename(record.path) in names]
    return selected[:limit]


def select_entrypoint_files(
    files: Iterable[FileRecord], limit: int = MAX_ENTRYPOINT_FILES
) -> List[FileRecord]:
    return [record for record in files if _ENTRYPOINT_PATTERN.search(record.path)][:limit]


def _excerpts(records: Iterable[FileRecord], limit: int) -> str:
    return "\n\n".join(f"{record.path}:\n{record.content[:limit]}" for record in records)


class PromptBuilder:
    """Assembles the README prompt and the per-section prompts."""

    def document_prompt(
        self,
        repo_info: RepoInfo,
        files: Sequence[FileRecord],
        existing_readme: Optional[str],
        analysis: AnalysisResult,
        user_context: Optional[str] = None,
    ) -> str:
        counts = analysis.counts()
        listed = ", ".join(record.path for record in files[:MAX_LISTED_FILES])
        manifests = _excerpts(select_manifest_files(files), MANIFEST_EXCERPT_LIMIT)
        readme_block = (
            f"EXISTING README:\n{existing_readme[:EXISTING_README_LIMIT]}"
            if existing_readme
            else "No existing README."
        )
        outline = "\n\n".join(f"## {title} ({hint})" for title, hint in DOCUMENT_OUTLINE)

        lines = [
            "You are a technical writer creating a GitHub README.md.",
            "",
            f"PROJECT: {repo_info.full_name}",
            f"Language: {repo_info.language or 'Web/Frontend'}",
            f"Description: {repo_info.description or 'No description'}",
            "",
            f"FILES: {listed}",
            "",
            "ANALYSIS:",
            f"- {len(files)} files analyzed",
            f"- {counts['functions']} functions found",
            f"- {counts['classes']} classes found",
            f"- {counts['endpoints']} API endpoints detected",
            "",
            readme_block,
        ]
        if manifests:
            lines.extend(["", "CONFIGURATION FILES:", manifests])
        if user_context:
            lines.extend(["", f"NOTES: {user_context}"])
        lines.extend(
            [
                "",
                "TASK: Write a complete README.md with:",
                "",
                "# Project Name",
                "",
                outline,
                "",
                "Write the complete README now:",
            ]
        )
        return "\n".join(lines)

    def overview_prompt(
        self,
        repo_info: RepoInfo,
        analysis: AnalysisResult,
        user_context: Optional[str] = None,
        existing_readme: Optional[str] = None,
    ) -> str:
        counts = analysis.counts()
        readme_info = (
            f"\n\nREADME Content (first {OVERVIEW_README_LIMIT} chars):\n"
            f"{existing_readme[:OVERVIEW_README_LIMIT]}"
            if existing_readme
            else ""
        )
        context_info = f"\n\nUser Context: {user_context}" if user_context else ""
        return (
            "You are a technical documentation expert. Generate a comprehensive 4-5 paragraph "
            "architectural overview of this project:\n\n"
            f"Project: {repo_info.full_name}\n"
            f"Description: {repo_info.description or 'No description provided'}\n"
            f"Primary Language: {repo_info.language}\n"
            f"Stars: {repo_info.stars}\n\n"
            "Code Analysis:\n"
            f"- {counts['functions']} functions found\n"
            f"- {counts['classes']} classes found\n"
            f"- {counts['endpoints']} API endpoints detected"
            f"{readme_info}{context_info}\n\n"
            "Write a detailed architectural overview explaining:\n"
            "1. What problem this project solves\n"
            "2. Main components and how they work together\n"
            "3. Key technologies and frameworks used\n"
            "4. How users would typically interact with this project\n\n"
            "Be specific and technical. Focus on architecture, not installation steps."
        )

    def install_prompt(
        self,
        repo_info: RepoInfo,
        files: Sequence[FileRecord],
        existing_readme: Optional[str] = None,
    ) -> str:
        manifests = select_manifest_files(
            files, INSTALL_MANIFEST_FILENAMES, MAX_INSTALL_MANIFEST_FILES
        )
        config_content = _excerpts(manifests, INSTALL_MANIFEST_EXCERPT_LIMIT)
        readme_excerpt = (
            existing_readme[:OVERVIEW_README_LIMIT] if existing_readme else "No README available"
        )
        return (
            "You are a technical documentation expert. Generate clear, accurate installation "
            "instructions for this project.\n\n"
            f"Project: {repo_info.full_name}\n"
            f"Language: {repo_info.language}\n"
            f"Description: {repo_info.description or 'No description'}\n\n"
            "Configuration Files Found:\n"
            f"{config_content or 'No configuration files detected'}\n\n"
            "README Excerpt:\n"
            f"{readme_excerpt}\n\n"
            "Generate installation instructions that include:\n"
            "1. Prerequisites (languages, tools, versions)\n"
            "2. Step-by-step installation commands\n"
            "3. Any environment setup needed (virtual environments, etc.)\n"
            "4. How to verify the installation\n\n"
            "Format as markdown with code blocks. Be specific to THIS project based on the "
            "files you see. Keep it concise (max 15 lines)."
        )

    def usage_prompt(
        self,
        repo_info: RepoInfo,
        files: Sequence[FileRecord],
        functions: Sequence[FunctionFact],
        endpoints: Sequence[EndpointFact],
    ) -> str:
        entrypoints = _excerpts(select_entrypoint_files(files), ENTRYPOINT_EXCERPT_LIMIT)
        project_type = self.project_type(functions, endpoints)
        details = []
        if endpoints:
            details.append(f"API Endpoints Found: {len(endpoints)}")
        details.append(f"Functions Found: {len(functions)}")
        details_block = "\n".join(details)
        return (
            "You are a technical documentation expert. Generate clear usage instructions for "
            "this project.\n\n"
            f"Project: {repo_info.full_name}\n"
            f"Type: {project_type}\n"
            f"Language: {repo_info.language}\n\n"
            "Main Entry Points:\n"
            f"{entrypoints or 'Not clearly identified'}\n\n"
            f"{details_block}\n\n"
            "Generate usage instructions that show:\n"
            "1. How to run/start the project\n"
            "2. Basic usage examples with actual commands\n"
            "3. Common commands or API calls\n"
            "4. Configuration options (if any)\n\n"
            "Format as markdown with code blocks. Be specific based on the code structure. "
            "Keep it concise (max 15 lines)."
        )

    def summary_prompt(self, code: str, kind: str, name: str) -> str:
        return (
            f'You are a technical documentation expert. Analyze this {kind} named "{name}" and '
            "provide a concise 1-2 sentence description of what it does.\n\n"
            "Code:\n"
            f"```\n{code[:SUMMARY_CODE_LIMIT]}\n```\n\n"
            "Provide ONLY the description, no additional text."
        )

    @staticmethod
    def project_type(
        functions: Sequence[FunctionFact], endpoints: Sequence[EndpointFact]
    ) -> str:
        if endpoints:
            return "API/Web Service"
        if any("main" in fn.name or "cli" in fn.name for fn in functions):
            return "CLI Tool"
        return "Library/Module"


__all__ = [
    "PromptBuilder",
    "select_entrypoint_files",
    "select_manifest_files",
]
