"""Prompt construction for README generation."""

from .builder import PromptBuilder, select_entrypoint_files, select_manifest_files

__all__ = ["PromptBuilder", "select_entrypoint_files", "select_manifest_files"]
