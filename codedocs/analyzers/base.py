"""Base classes for structural extraction strategies."""

from abc import ABC, abstractmethod

from ..models import FileFacts


class Extractor(ABC):
    """Contract for one language family's extraction strategy."""

    @abstractmethod
    def extract(self, content: str, path: str) -> FileFacts:
        """Return the facts found in ``content``; may raise on unparsable input."""
