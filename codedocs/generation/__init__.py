"""README generation policy."""

from .orchestrator import GenerationOrchestrator

__all__ = ["GenerationOrchestrator"]
