"""Deterministic fallback documents used when generation fails."""

from __future__ import annotations

from typing import Dict, Optional, Sequence

from .models import AnalysisResult, FileRecord, RepoInfo

_MIN_ENHANCEABLE_README = 100


def build_fallback_readme(
    repo_info: RepoInfo,
    existing_readme: Optional[str],
    files: Sequence[FileRecord],
    analysis: AnalysisResult | None = None,
) -> str:
    """Return a README assembled only from metadata; never raises."""
    if existing_readme and len(existing_readme) > _MIN_ENHANCEABLE_README:
        return _enhance_existing_readme(repo_info, existing_readme, files)
    return _basic_readme(repo_info, files, analysis)


def _enhance_existing_readme(
    repo_info: RepoInfo, readme: str, files: Sequence[FileRecord]
) -> str:
    lowered = readme.lower()
    parts = [f"# {repo_info.name}", "", readme.strip(), ""]

    if "install" not in lowered and "setup" not in lowered:
        parts.extend(["## Installation", "", _install_snippet(files), ""])

    if "usage" not in lowered and "how to" not in lowered:
        parts.extend(
            [
                "## Usage",
                "",
                "Please refer to the documentation or code comments for usage instructions.",
                "",
            ]
        )
    return "\n".join(parts).rstrip() + "\n"


def _install_snippet(files: Sequence[FileRecord]) -> str:
    paths = {record.path for record in files}
    if "package.json" in paths:
        return "```bash\nnpm install\n```"
    if "requirements.txt" in paths:
        return "```bash\npip install -r requirements.txt\n```"
    return "Refer to the repository for setup instructions."


def _basic_readme(
    repo_info: RepoInfo,
    files: Sequence[FileRecord],
    analysis: AnalysisResult | None,
) -> str:
    language = repo_info.language or "Web"
    parts = [f"# {repo_info.name}", ""]
    if repo_info.description:
        parts.extend([repo_info.description, ""])

    parts.extend(
        [
            "## Project Info",
            "",
            f"- **Language:** {language}",
            f"- **Files:** {len(files)}",
        ]
    )
    if analysis is not None:
        counts = analysis.counts()
        parts.extend(
            [
                f"- **Functions:** {counts['functions']}",
                f"- **Classes:** {counts['classes']}",
                f"- **API endpoints:** {counts['endpoints']}",
            ]
        )
    parts.extend(
        [
            "",
            "## Getting Started",
            "",
            "```bash",
            f"git clone https://github.com/{repo_info.full_name}.git",
            f"cd {repo_info.name}",
            "```",
            "",
            fallback_install_instructions(repo_info.language),
            "",
            "## Usage",
            "",
            "Refer to the repository for detailed setup and usage instructions.",
            "",
            "---",
            "*Generated by CodeDocs*",
        ]
    )
    return "\n".join(parts) + "\n"


def fallback_overview(repo_info: RepoInfo, existing_readme: Optional[str] = None) -> str:
    if existing_readme:
        return existing_readme[:500]
    description = repo_info.description or "A software project"
    return f"{description} built primarily with {repo_info.language or 'an unspecified language'}."


def fallback_install_instructions(language: Optional[str]) -> str:
    command = _INSTALL_COMMANDS.get((language or "").lower())
    if command is None:
        return "Refer to the repository README for installation instructions."
    return f"```bash\n{command}\n```"


def fallback_usage_instructions() -> str:
    return "Refer to the repository README for usage instructions."


def fallback_summary(kind: str, name: str) -> str:
    return f"A {kind} that performs {name} operations."


_INSTALL_COMMANDS: Dict[str, str] = {
    "python": "pip install -r requirements.txt",
    "javascript": "npm install",
    "typescript": "npm install",
    "go": "go mod download",
    "rust": "cargo build",
}


__all__ = [
    "build_fallback_readme",
    "fallback_install_instructions",
    "fallback_overview",
    "fallback_summary",
    "fallback_usage_instructions",
]
